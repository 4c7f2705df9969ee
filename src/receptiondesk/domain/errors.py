"""
Domain-specific error types for business rule violations.
"""

from typing import Any, Dict, Optional


class DomainError(Exception):
    """Base domain error."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class InvalidIdentifierError(DomainError):
    """Identifier is not a 24 character hex object id."""

    def __init__(self, field: str, value: Any) -> None:
        message = f"Invalid {field} format: expected a 24 character hex id"
        super().__init__(message, "INVALID_ID", {"field": field, "value": str(value)[:64]})


class MissingFieldError(DomainError):
    """A required field was not supplied."""

    def __init__(self, field: str) -> None:
        message = f"{field} is required"
        super().__init__(message, "MISSING_FIELD", {"field": field})


class InvalidFieldValueError(DomainError):
    """A field was supplied with a value outside its allowed set or format."""

    def __init__(self, field: str, value: Any, allowed: Optional[list] = None) -> None:
        message = f"Invalid value for {field}: {value}"
        details: Dict[str, Any] = {"field": field, "value": value}
        if allowed:
            details["allowed"] = allowed
        super().__init__(message, "INVALID_FIELD_VALUE", details)


class EntityNotFoundError(DomainError):
    """Base class for well-formed lookups that matched nothing."""


class AppointmentNotFoundError(EntityNotFoundError):
    """Appointment not found."""

    def __init__(self, appointment_id: str) -> None:
        message = f"Appointment with ID '{appointment_id}' not found"
        super().__init__(message, "APPOINTMENT_NOT_FOUND", {"appointment_id": appointment_id})


class QueueEntryNotFoundError(EntityNotFoundError):
    """Patient queue entry not found."""

    def __init__(self, appointment_key: str) -> None:
        message = f"Queue entry for appointment key '{appointment_key}' not found"
        super().__init__(message, "QUEUE_ENTRY_NOT_FOUND", {"appointment_key": appointment_key})


class NotificationNotFoundError(EntityNotFoundError):
    """Notification not found."""

    def __init__(self, notification_id: str) -> None:
        message = f"Notification with ID '{notification_id}' not found"
        super().__init__(message, "NOTIFICATION_NOT_FOUND", {"notification_id": notification_id})


class ReceptionistNotFoundError(EntityNotFoundError):
    """Receptionist not found."""

    def __init__(self, lookup: str) -> None:
        message = f"Receptionist '{lookup}' not found"
        super().__init__(message, "RECEPTIONIST_NOT_FOUND", {"receptionist": lookup})


class NoLinkedDoctorsError(EntityNotFoundError):
    """Receptionist exists but is not linked to any doctor."""

    def __init__(self, receptionist_id: str) -> None:
        message = "No doctors are linked to this receptionist account"
        super().__init__(message, "NO_LINKED_DOCTORS", {"receptionist_id": receptionist_id})


class InvalidStatusTransitionError(DomainError):
    """Requested status change is not allowed from the current status."""

    def __init__(self, entity: str, current: str, target: str) -> None:
        message = f"Cannot change {entity} status from '{current}' to '{target}'"
        super().__init__(
            message,
            "INVALID_STATUS_TRANSITION",
            {"entity": entity, "current_status": current, "requested_status": target},
        )


class InvalidCredentialsError(DomainError):
    """Email/password pair did not match."""

    def __init__(self) -> None:
        super().__init__("Invalid email or password", "INVALID_CREDENTIALS")


class InvalidSessionError(DomainError):
    """Session token is missing, malformed, expired or points to a removed account."""

    def __init__(self, reason: str = "Invalid session") -> None:
        super().__init__(reason, "INVALID_SESSION")


class DoctorAccessDeniedError(DomainError):
    """Session is not linked to the requested doctor."""

    def __init__(self, doctor_id: str) -> None:
        message = f"Session is not linked to doctor '{doctor_id}'"
        super().__init__(message, "DOCTOR_ACCESS_DENIED", {"doctor_id": doctor_id})


class ScheduleNotFoundError(EntityNotFoundError):
    """No schedule document for the doctor/date pair."""

    def __init__(self, doctor_id: str, date: str) -> None:
        message = f"No schedule for doctor '{doctor_id}' on {date}"
        super().__init__(message, "SCHEDULE_NOT_FOUND", {"doctor_id": doctor_id, "date": date})
