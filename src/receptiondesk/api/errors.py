from typing import Any, Dict, Optional

from ..core.exceptions import AuthenticationError, DatabaseError
from ..domain.errors import (
    DoctorAccessDeniedError,
    DomainError,
    EntityNotFoundError,
    InvalidCredentialsError,
    InvalidFieldValueError,
    InvalidIdentifierError,
    InvalidSessionError,
    InvalidStatusTransitionError,
    MissingFieldError,
)


class APIError(Exception):
    def __init__(self, code: str, message: str, http_status: int = 400, details: dict = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.http_status = http_status
        self.details = details


class ValidationError(APIError):
    def __init__(self, message: str, details: dict = None, code: str = "INVALID_INPUT"):
        super().__init__(code, message, 400, details)


class NotFoundError(APIError):
    def __init__(self, message: str, details: dict = None, code: str = "NOT_FOUND"):
        super().__init__(code, message, 404, details)


class ConflictError(APIError):
    def __init__(self, message: str, details: dict = None, code: str = "CONFLICT"):
        super().__init__(code, message, 409, details)


class UnauthorizedError(APIError):
    def __init__(self, message: str = "Unauthorized", details: dict = None, code: str = "UNAUTHORIZED"):
        super().__init__(code, message, 401, details)


class ForbiddenError(APIError):
    def __init__(self, message: str = "Forbidden", details: dict = None, code: str = "FORBIDDEN"):
        super().__init__(code, message, 403, details)


class ServiceUnavailableError(APIError):
    def __init__(self, message: str, details: dict = None, code: str = "DATABASE_ERROR"):
        super().__init__(code, message, 503, details)


def to_api_error(exc: Exception) -> APIError:
    """Map domain and infrastructure exceptions onto their HTTP error."""
    if isinstance(exc, APIError):
        return exc
    details: Optional[Dict[str, Any]] = getattr(exc, "details", None) or None
    message = getattr(exc, "message", None) or str(exc)
    code = getattr(exc, "error_code", None)

    if isinstance(exc, InvalidIdentifierError):
        return ValidationError(message, details, code="INVALID_ID")
    if isinstance(exc, (MissingFieldError, InvalidFieldValueError)):
        return ValidationError(message, details)
    if isinstance(exc, EntityNotFoundError):
        return NotFoundError(message, details, code=code or "NOT_FOUND")
    if isinstance(exc, InvalidStatusTransitionError):
        return ConflictError(message, details, code="INVALID_STATUS_TRANSITION")
    if isinstance(exc, (InvalidCredentialsError, InvalidSessionError)):
        return UnauthorizedError(message, details, code=code or "UNAUTHORIZED")
    if isinstance(exc, AuthenticationError):
        return UnauthorizedError(message, details)
    if isinstance(exc, DoctorAccessDeniedError):
        return ForbiddenError(message, details, code="DOCTOR_ACCESS_DENIED")
    if isinstance(exc, DatabaseError):
        return ServiceUnavailableError(message, details)
    if isinstance(exc, DomainError):
        return ValidationError(message, details, code=code or "INVALID_INPUT")
    return APIError("INTERNAL_ERROR", "An unexpected error occurred", 500)
