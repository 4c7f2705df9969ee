"""MongoDB Beanie models for doctor and receptionist documents."""

from datetime import datetime
from typing import Any, List, Optional

from beanie import Document
from pydantic import ConfigDict, Field, field_validator

from receptiondesk.core.utils.datetime_utils import utcnow


class DoctorMongo(Document):
    """MongoDB model for Doctor entity."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., description="Doctor display name")
    specialization: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    department: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow, alias="createdAt")
    updated_at: datetime = Field(default_factory=utcnow, alias="updatedAt")

    class Settings:
        name = "doctors"
        indexes = ["email"]


class ReceptionistMongo(Document):
    """MongoDB model for Receptionist entity.

    ``linked_doctor_ids`` may still hold hex strings in older documents; it is
    kept untyped here and normalized by the repository.
    """

    model_config = ConfigDict(populate_by_name=True)

    email: str
    name: str = ""
    phone: Optional[str] = None
    password_hash: str = Field(default="", alias="passwordHash")
    linked_doctor_ids: List[Any] = Field(default_factory=list)
    status: str = Field(default="active")
    last_login: Optional[datetime] = Field(None, alias="lastLogin")
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

    @field_validator("linked_doctor_ids", mode="before")
    @classmethod
    def default_links(cls, v):
        return v or []

    class Settings:
        name = "receptionists"
        indexes = ["email"]
