"""MongoDB Beanie models for doctor schedules and the cancelled-appointment archive."""

from datetime import datetime
from typing import List, Optional

from beanie import Document, PydanticObjectId
from pydantic import ConfigDict, Field, field_validator
from pymongo import ASCENDING, IndexModel

from receptiondesk.core.utils.datetime_utils import utcnow

from .coercion import coerce_object_id, coerce_schedule_date


class DoctorScheduleMongo(Document):
    """Available slots of one doctor on one date."""

    model_config = ConfigDict(populate_by_name=True)

    doctor_id: PydanticObjectId = Field(..., alias="doctorId")
    date: str = Field(..., description="YYYY-MM-DD")
    available_slots: List[str] = Field(default_factory=list, alias="availableSlots")
    created_at: datetime = Field(default_factory=utcnow, alias="createdAt")
    updated_at: datetime = Field(default_factory=utcnow, alias="updatedAt")

    @field_validator("doctor_id", mode="before")
    @classmethod
    def normalize_doctor_id(cls, v):
        return coerce_object_id(v)

    @field_validator("date", mode="before")
    @classmethod
    def normalize_date(cls, v):
        return coerce_schedule_date(v)

    class Settings:
        name = "doctor_schedules"
        indexes = [
            IndexModel([("doctorId", ASCENDING), ("date", ASCENDING)], unique=True, name="doctor_date_unique"),
        ]


class CancelledAppointmentMongo(Document):
    """Archive copy of a rejected appointment."""

    model_config = ConfigDict(populate_by_name=True)

    original_appointment_id: PydanticObjectId = Field(..., alias="originalAppointmentId")
    doctor_id: PydanticObjectId = Field(..., alias="doctorId")
    patient_name: str = Field(default="", alias="patientName")
    patient_email: Optional[str] = Field(None, alias="patientEmail")
    appointment_date: str = Field(default="", alias="appointmentDate")
    time_slot: str = Field(default="", alias="timeSlot")
    rejection_reason: Optional[str] = Field(None, alias="rejectionReason")
    rejected_at: datetime = Field(default_factory=utcnow, alias="rejectedAt")
    rejected_by: str = Field(default="receptionist", alias="rejectedBy")

    @field_validator("original_appointment_id", "doctor_id", mode="before")
    @classmethod
    def normalize_ids(cls, v):
        return coerce_object_id(v)

    class Settings:
        name = "cancelled_appointments"
        indexes = [
            IndexModel([("originalAppointmentId", ASCENDING)], unique=True, name="original_appointment_unique"),
        ]
