"""
Health check endpoints.
"""

import logging
import time

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from ...core.config import get_settings
from ...core.exceptions import DatabaseError
from ..deps import GatewayDep, OutboxRepositoryDep
from ..schemas.common import DatabaseHealth, HealthResponse
from ..utils.responses import ok

router = APIRouter(prefix="/health", tags=["health"])
liveness_router = APIRouter(prefix="/health", tags=["health"])
logger = logging.getLogger("receptiondesk")

COUNTED_COLLECTIONS = ["receptionists", "doctors", "appointments"]


@router.get("", response_model=HealthResponse)
async def health_check(request: Request, gateway: GatewayDep, outbox: OutboxRepositoryDep):
    """
    Health check endpoint.

    Pings the database and reports collection and outbox counts; answers 503
    when the store cannot be reached.
    """
    settings = get_settings()
    started = time.perf_counter()
    relay = getattr(request.app.state, "relay", None)
    relay_status = {"rooms": len(relay.rooms()), "sessions": relay.session_count} if relay else {}

    connected = await gateway.ping()
    elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
    if not connected:
        body = HealthResponse(
            status="unhealthy",
            service=settings.app_name,
            version=settings.app_version,
            database=DatabaseHealth(
                connected=False, ping="failed", response_time_ms=elapsed_ms, error="Database unreachable"
            ),
            relay=relay_status,
        )
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=body.model_dump(mode="json", by_alias=True),
        )

    collections = {}
    outbox_counts = {}
    try:
        collections = await gateway.collection_counts(COUNTED_COLLECTIONS)
        outbox_counts = await outbox.count_by_status()
    except DatabaseError as e:
        # Ping passed; counts are informational
        logger.warning("Health check counts unavailable: %s", e.message)

    return HealthResponse(
        status="healthy",
        service=settings.app_name,
        version=settings.app_version,
        database=DatabaseHealth(connected=True, ping="ok", response_time_ms=elapsed_ms),
        collections=collections,
        outbox=outbox_counts,
        relay=relay_status,
    )


@liveness_router.get("/live")
async def liveness_check(request: Request):
    """Process is up; does not touch the database."""
    return ok(request, message="OK", status="alive")
