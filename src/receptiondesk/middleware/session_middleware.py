"""
Session middleware - resolves the receptionist session token on each request.

The token is read from ``Authorization: Bearer <token>`` or ``X-Session-Token``.
When AUTH_REQUIRE_SESSION is enabled, non-public endpoints without a valid
token are rejected here; otherwise an invalid token is ignored and the
request proceeds without a session scope.
"""
from typing import Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
import logging

from ..api.utils.responses import fail
from ..core.config import get_settings
from ..core.utils.crypto import read_session_token
from ..domain.errors import InvalidSessionError

logger = logging.getLogger(__name__)

SESSION_HEADER = "X-Session-Token"


def extract_session_token(request: Request) -> Optional[str]:
    auth_header = request.headers.get("Authorization") or ""
    if auth_header.lower().startswith("bearer "):
        return auth_header[7:].strip() or None
    return (request.headers.get(SESSION_HEADER) or "").strip() or None


class SessionMiddleware(BaseHTTPMiddleware):
    """
    Attach ``request.state.receptionist_id`` for requests carrying a valid session.

    Login, health checks, docs and the admin endpoints (API key protected) are public.
    """

    PUBLIC_PATHS = {
        "/",
        "/favicon.ico",
        "/docs",
        "/redoc",
        "/openapi.json",
        "/health/live",
        "/api/health",
        "/api/auth/login",
        "/api/auth/validate-session",
        "/api/auth/logout",
        "/api/socket",
        "/api/doctors/seed",
        "/api/receptionists/linked-doctors",
    }

    PUBLIC_PATH_PREFIXES = {
        "/docs",
        "/redoc",
    }

    def is_public_endpoint(self, path: str) -> bool:
        """Check if endpoint is public and doesn't require a session."""
        normalized_path = path.rstrip("/") or "/"

        if normalized_path in self.PUBLIC_PATHS:
            return True

        for prefix in self.PUBLIC_PATH_PREFIXES:
            if path.startswith(prefix + "/"):
                return True

        return False

    async def dispatch(self, request: Request, call_next):
        request.state.receptionist_id = None
        require_session = get_settings().auth.require_session
        token = extract_session_token(request)

        if token:
            try:
                request.state.receptionist_id = read_session_token(token)
            except InvalidSessionError as e:
                logger.info(f"Rejected session token for {request.method} {request.url.path}: {e.message}")

        if (
            require_session
            and request.state.receptionist_id is None
            and request.method != "OPTIONS"
            and not self.is_public_endpoint(request.url.path)
        ):
            logger.warning(
                f"❌ Session required for {request.method} {request.url.path} "
                f"(IP: {request.client.host if request.client else 'unknown'})"
            )
            return fail(
                request,
                "INVALID_SESSION",
                "A valid session is required for this endpoint",
                details={"path": request.url.path, "hint": "Provide Authorization: Bearer <sessionToken>"},
                status_code=401,
                headers={"WWW-Authenticate": "Bearer"},
            )

        return await call_next(request)
