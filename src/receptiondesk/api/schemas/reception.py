"""
Request bodies for the reception desk endpoints.

Fields are camelCase on the wire and optional in the schema: presence and
format checks happen in the use cases so that every malformed request is
answered with the same 400 envelope.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class UpdateAppointmentStatusBody(CamelModel):
    appointment_id: Optional[str] = Field(None, alias="appointmentId")
    status: Optional[str] = None
    rejection_reason: Optional[str] = Field(None, alias="rejectionReason", max_length=500)
    doctor_id: Optional[str] = Field(None, alias="doctorId")


class UpdateQueueEntryBody(CamelModel):
    appointment_key: Optional[str] = Field(None, alias="appointmentKey")
    queue_status: Optional[str] = Field(None, alias="queueStatus")
    status: Optional[str] = None


class ScheduleSlotBody(CamelModel):
    doctor_id: Optional[str] = Field(None, alias="doctorId")
    date: Optional[str] = None
    time_slot: Optional[str] = Field(None, alias="timeSlot")


class NotificationStatusBody(CamelModel):
    notification_id: Optional[str] = Field(None, alias="notificationId")
    status: Optional[str] = None


class LoginBody(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None


class ValidateSessionBody(CamelModel):
    session_token: Optional[str] = Field(None, alias="sessionToken")


class LinkDoctorsBody(CamelModel):
    email: Optional[str] = None
    doctor_ids: Optional[List[str]] = Field(None, alias="doctorIds")
