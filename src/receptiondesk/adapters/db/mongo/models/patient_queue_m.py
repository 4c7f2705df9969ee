"""MongoDB Beanie model for patient queue documents."""

from datetime import datetime
from typing import Optional

from beanie import Document, PydanticObjectId
from pydantic import ConfigDict, Field, field_validator
from pymongo import ASCENDING, IndexModel

from receptiondesk.core.utils.datetime_utils import utcnow
from receptiondesk.domain.enums import AppointmentStatus, QueueStatus

from .coercion import coerce_object_id, coerce_optional_object_id, coerce_schedule_date


class PatientQueueMongo(Document):
    """MongoDB model for PatientQueueEntry entity; one document per appointment key."""

    model_config = ConfigDict(populate_by_name=True)

    appointment_key: str = Field(..., alias="appointmentKey")
    doctor_id: PydanticObjectId = Field(..., alias="doctorId")
    doctor_name: Optional[str] = Field(None, alias="doctorName")
    patient_id: Optional[PydanticObjectId] = Field(None, alias="patientId")
    patient_name: str = Field(default="", alias="patientName")
    patient_phone: Optional[str] = Field(None, alias="patientPhone")
    appointment_date: str = Field(default="", alias="appointmentDate")
    session_start_time: str = Field(default="", alias="sessionStartTime")
    status: AppointmentStatus = Field(default=AppointmentStatus.CONFIRMED)
    queue_status: QueueStatus = Field(default=QueueStatus.WAITING, alias="queueStatus")
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

    class Settings:
        # Collection name as spelled in the live database
        name = "PaitentQueue"
        indexes = [
            IndexModel([("appointmentKey", ASCENDING)], unique=True, name="appointmentKey_unique"),
            "doctorId",
            "queueStatus",
        ]
