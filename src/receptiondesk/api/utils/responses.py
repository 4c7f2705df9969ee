from typing import Any, Optional

from fastapi import Request
from fastapi.responses import JSONResponse

from ..schemas.common import ErrorResponse, SuccessResponse


def ok(request: Request, message: str = "", **payload: Any) -> SuccessResponse:
    """Success envelope with the named payload fields at the top level."""
    req_id = getattr(request.state, "request_id", None)
    return SuccessResponse(success=True, message=message, request_id=req_id or "", **payload)


def fail(
    request: Request,
    error: str,
    message: str,
    details: Optional[dict] = None,
    status_code: int = 500,
    headers: Optional[dict] = None,
) -> JSONResponse:
    req_id = getattr(request.state, "request_id", None)
    body = ErrorResponse(error=error, message=message, request_id=req_id or "", details=details or {})
    return JSONResponse(status_code=status_code, content=body.model_dump(), headers=headers)
