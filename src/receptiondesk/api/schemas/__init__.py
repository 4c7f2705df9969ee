"""
API schemas package.
"""

from .common import BaseResponse, ErrorResponse, HealthResponse, SuccessResponse
from .reception import (
    LinkDoctorsBody,
    LoginBody,
    NotificationStatusBody,
    ScheduleSlotBody,
    UpdateAppointmentStatusBody,
    UpdateQueueEntryBody,
    ValidateSessionBody,
)

__all__ = [
    "BaseResponse",
    "ErrorResponse",
    "HealthResponse",
    "SuccessResponse",
    "LinkDoctorsBody",
    "LoginBody",
    "NotificationStatusBody",
    "ScheduleSlotBody",
    "UpdateAppointmentStatusBody",
    "UpdateQueueEntryBody",
    "ValidateSessionBody",
]
