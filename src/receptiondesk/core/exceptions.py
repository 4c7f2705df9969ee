"""
Infrastructure exception classes.

Domain rule violations live in domain/errors.py and HTTP-facing errors in
api/errors.py; these cover the persistence layer and admin authentication.
"""

from typing import Any, Dict, Optional


class ReceptionDeskException(Exception):
    """Base exception class for infrastructure failures."""

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


class DatabaseError(ReceptionDeskException):
    """Raised when there's a database operation error."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, "DATABASE_ERROR", details)


class DatabaseUnavailableError(DatabaseError):
    """Raised when the database cannot be reached (selection timeout, network, auth)."""


class AuthenticationError(ReceptionDeskException):
    """Raised when there's an authentication error."""

    def __init__(
        self,
        message: str = "Authentication failed",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, "AUTH_ERROR", details)
