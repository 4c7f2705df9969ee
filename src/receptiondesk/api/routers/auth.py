"""
Receptionist authentication endpoints.
"""

import logging

from fastapi import APIRouter, Request

from ...application.dto.reception_dto import SessionResult
from ...middleware.session_middleware import extract_session_token
from ..deps import LoginDep, ValidateSessionDep
from ..schemas.reception import LoginBody, ValidateSessionBody
from ..utils.responses import ok

router = APIRouter(prefix="/auth", tags=["Authentication"])
logger = logging.getLogger("receptiondesk")


def _session_payload(result: SessionResult) -> dict:
    payload = {
        "receptionist": result.receptionist.to_profile(),
        "doctors": [doctor.to_summary() for doctor in result.doctors],
    }
    if result.session_token:
        payload["sessionToken"] = result.session_token
    return payload


@router.post("/login", summary="Log in with email and password")
async def login(request: Request, body: LoginBody, use_case: LoginDep):
    result = await use_case.execute(body.email, body.password)
    return ok(request, message="Login successful", **_session_payload(result))


@router.post("/validate-session", summary="Check that a session token is still valid")
async def validate_session(request: Request, body: ValidateSessionBody, use_case: ValidateSessionDep):
    token = body.session_token or extract_session_token(request)
    result = await use_case.execute(token)
    return ok(request, message="Session valid", valid=True, **_session_payload(result))


@router.post("/logout", summary="End the session")
async def logout(request: Request):
    # Tokens are stateless; the client discards its copy
    receptionist_id = getattr(request.state, "receptionist_id", None)
    if receptionist_id:
        logger.info("Receptionist %s logged out", receptionist_id)
    return ok(request, message="Logged out")
