"""MongoDB Beanie model for notification documents."""

from datetime import datetime
from typing import Optional

from beanie import Document, PydanticObjectId
from pydantic import ConfigDict, Field, field_validator
from pymongo import ASCENDING, DESCENDING, IndexModel

from receptiondesk.core.utils.datetime_utils import utcnow
from receptiondesk.domain.enums import NotificationStatus, NotificationType

from .coercion import coerce_object_id, coerce_optional_object_id


class NotificationMongo(Document):
    """MongoDB model for Notification entity."""

    model_config = ConfigDict(populate_by_name=True)

    doctor_id: PydanticObjectId = Field(..., alias="doctorId")
    doctor_name: Optional[str] = Field(None, alias="doctorName")
    patient_id: Optional[PydanticObjectId] = Field(None, alias="patientId")
    patient_name: str = Field(default="", alias="patientName")
    appointment_date: str = Field(default="", alias="appointmentDate")
    appointment_time: str = Field(default="", alias="appointmentTime")
    appointment_key: Optional[str] = Field(None, alias="appointmentKey")
    message: str = ""
    type: NotificationType
    status: NotificationStatus = Field(default=NotificationStatus.UNREAD)
    rejection_reason: Optional[str] = Field(None, alias="rejectionReason")
    event_id: Optional[str] = Field(None, alias="eventId", description="Outbox event that produced it")
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

    class Settings:
        name = "Notification"
        indexes = [
            IndexModel([("eventId", ASCENDING)], unique=True, sparse=True, name="eventId_unique"),
            IndexModel([("doctorId", ASCENDING), ("createdAt", DESCENDING)]),
        ]
