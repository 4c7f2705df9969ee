"""MongoDB Beanie model for appointment documents."""

from datetime import datetime
from typing import Optional

from beanie import Document, PydanticObjectId
from pydantic import ConfigDict, Field, field_validator

from receptiondesk.core.utils.datetime_utils import utcnow
from receptiondesk.domain.enums import AppointmentStatus

from .coercion import coerce_object_id, coerce_optional_object_id, coerce_schedule_date


class AppointmentMongo(Document):
    """MongoDB model for Appointment entity."""

    model_config = ConfigDict(populate_by_name=True)

    appointment_key: Optional[str] = Field(None, alias="appointmentKey")
    doctor_id: PydanticObjectId = Field(..., alias="doctorId")
    doctor_name: Optional[str] = Field(None, alias="doctorName")
    patient_id: Optional[PydanticObjectId] = Field(None, alias="patientId")
    patient_name: str = Field(default="", alias="patientName")
    patient_email: Optional[str] = Field(None, alias="patientEmail")
    patient_phone: Optional[str] = Field(None, alias="patientPhone")
    appointment_date: str = Field(default="", alias="appointmentDate", description="YYYY-MM-DD")
    time_slot: str = Field(default="", alias="timeSlot")
    reason: Optional[str] = None
    status: AppointmentStatus = Field(default=AppointmentStatus.PENDING)
    rejection_reason: Optional[str] = Field(None, alias="rejectionReason")
    created_at: datetime = Field(default_factory=utcnow, alias="createdAt")
    updated_at: datetime = Field(default_factory=utcnow, alias="updatedAt")

    @field_validator("doctor_id", mode="before")
    @classmethod
    def normalize_doctor_id(cls, v):
        return coerce_object_id(v)

    @field_validator("patient_id", mode="before")
    @classmethod
    def normalize_patient_id(cls, v):
        return coerce_optional_object_id(v)

    @field_validator("appointment_date", mode="before")
    @classmethod
    def normalize_appointment_date(cls, v):
        return coerce_schedule_date(v)

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v):
        return v.strip().lower() if isinstance(v, str) else v

    class Settings:
        name = "appointments"
        indexes = [
            "doctorId",
            "appointmentKey",
            [("doctorId", 1), ("appointmentDate", 1), ("timeSlot", 1)],
            "status",
        ]
