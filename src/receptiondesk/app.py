"""
FastAPI application factory and main app configuration.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import asyncio
import logging
import sys
import traceback

from .adapters.db.mongo.gateway import MongoGateway
from .adapters.db.mongo.models import DOCUMENT_MODELS
from .adapters.db.mongo.repositories import (
    MongoCancelledAppointmentRepository,
    MongoNotificationRepository,
    MongoOutboxRepository,
    MongoPatientQueueRepository,
    MongoScheduleRepository,
)
from .adapters.realtime.relay import Relay
from .api.errors import APIError, to_api_error
from .api.routers import appointments, auth, health, notifications, patient_queue, realtime, schedules, staff
from .api.schemas.common import ErrorResponse
from .core.config import get_settings
from .core.exceptions import DatabaseError, ReceptionDeskException
from .core.structured_logger import configure_logging
from .domain.errors import DomainError
from .middleware.performance_middleware import PerformanceMiddleware
from .middleware.request_id_middleware import RequestIDMiddleware
from .middleware.session_middleware import SessionMiddleware
from .workers.outbox_dispatcher import OutboxDispatcher, run_outbox_dispatcher_forever

logger = logging.getLogger("receptiondesk")


def _announce(msg: str, level: int = logging.INFO) -> None:
    # Use both print and logger to ensure visibility under gunicorn and uvicorn alike
    print(msg, flush=True)
    logger.log(level, msg)


def build_outbox_dispatcher(app: FastAPI) -> OutboxDispatcher:
    """Dispatcher wired to the app's gateway and relay, used by the periodic loop."""
    gateway: MongoGateway = app.state.gateway
    return OutboxDispatcher(
        outbox=MongoOutboxRepository(gateway),
        queue=MongoPatientQueueRepository(gateway),
        schedules=MongoScheduleRepository(gateway),
        archive=MongoCancelledAppointmentRepository(gateway),
        notifications=MongoNotificationRepository(gateway),
        publisher=app.state.relay,
        settings=get_settings().outbox,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    dispatcher_task = None
    settings = get_settings()
    configure_logging(settings.logging.level, settings.logging.format, settings.logging.file_path)

    _announce(f"🚀 Starting {settings.app_name} v{settings.app_version}")
    _announce(f"📊 Environment: {settings.app_env}")
    _announce(f"🔧 Debug mode: {settings.debug}")
    _announce("=" * 60)

    gateway: MongoGateway = app.state.gateway
    try:
        await gateway.open()
        _announce("✅ Database connection established")
    except DatabaseError as e:
        # Keep serving: the gateway reconnects on the next request and /api/health reports 503
        error_sep = "=" * 60
        _announce(error_sep, logging.ERROR)
        _announce(f"❌ Database connection failed: {e.message}", logging.ERROR)
        _announce(f"Error type: {type(e.__cause__ or e).__name__}", logging.ERROR)
        _announce(error_sep, logging.ERROR)
        sys.stderr.flush()

    try:
        if settings.outbox.enabled:
            dispatcher_task = asyncio.create_task(
                run_outbox_dispatcher_forever(build_outbox_dispatcher(app), settings.outbox)
            )
            _announce("✅ Outbox dispatcher started")
        else:
            _announce("ℹ️  Outbox dispatcher disabled (set OUTBOX_ENABLED=true to enable)")

        relay_state = "enabled" if settings.relay.enabled else "disabled"
        _announce(f"✅ Relay {relay_state} at /api/socket")
        _announce("✅ Application startup completed successfully")
    except Exception as e:
        _announce(f"❌ CRITICAL: Application startup failed: {e}", logging.ERROR)
        _announce(f"Traceback:\n{traceback.format_exc()}", logging.ERROR)
        sys.stderr.flush()
        await gateway.close()
        raise

    yield

    # Shutdown
    _announce(f"🛑 Shutting down {settings.app_name}")
    if dispatcher_task:
        dispatcher_task.cancel()
        try:
            await dispatcher_task
        except asyncio.CancelledError:
            pass
        _announce("✅ Outbox dispatcher stopped")
    await gateway.close()


def _error_response(request: Request, exc: APIError) -> JSONResponse:
    req_id = getattr(request.state, "request_id", None)
    headers = {"WWW-Authenticate": "Bearer"} if exc.http_status == 401 else None
    return JSONResponse(
        status_code=exc.http_status,
        content=ErrorResponse(
            error=exc.code,
            message=exc.message,
            request_id=req_id or "",
            details=exc.details or {},
        ).model_dump(),
        headers=headers,
    )


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Reception Desk",
        description="Clinic receptionist backend: appointments, patient queue, schedules and live updates",
        version=settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # One gateway and one relay per process
    app.state.gateway = MongoGateway(settings.database, DOCUMENT_MODELS)
    app.state.relay = Relay()

    app.add_middleware(SessionMiddleware)
    app.add_middleware(PerformanceMiddleware)
    app.add_middleware(RequestIDMiddleware)

    allow_methods = list({m.upper() for m in settings.cors.allowed_methods} | {"PATCH", "OPTIONS"})
    allow_headers = settings.cors.allowed_headers or ["*"]
    if allow_headers != ["*"]:
        for header in ("content-type", "authorization", "x-api-key", "x-session-token", "x-request-id"):
            if header not in {h.lower() for h in allow_headers}:
                allow_headers.append(header)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.allowed_origins,
        allow_credentials=settings.cors.allow_credentials,
        allow_methods=allow_methods,
        allow_headers=allow_headers,
        max_age=600,
        expose_headers=["X-Request-ID", "X-Process-Time"],
    )

    # Include routers: Health → Auth → Appointments → Queue → Schedules → Notifications → Staff → Relay
    app.include_router(health.liveness_router)
    app.include_router(health.router, prefix="/api")
    app.include_router(auth.router, prefix="/api")
    app.include_router(appointments.router, prefix="/api")
    app.include_router(patient_queue.router, prefix="/api")
    app.include_router(schedules.router, prefix="/api")
    app.include_router(notifications.router, prefix="/api")
    app.include_router(staff.router, prefix="/api")
    app.include_router(realtime.router, prefix="/api")

    @app.exception_handler(APIError)
    async def api_error_handler(request: Request, exc: APIError):
        req_id = getattr(request.state, "request_id", None)
        logger.error(f"APIError: {exc.code} ({exc.http_status}) {exc.message} | request_id={req_id}")
        return _error_response(request, exc)

    # Domain errors carry their own code; the HTTP status comes from the error family
    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError):
        api_error = to_api_error(exc)
        req_id = getattr(request.state, "request_id", None)
        logger.info(
            f"DomainError: {api_error.code} ({api_error.http_status}) {exc.message} | request_id={req_id}"
        )
        return _error_response(request, api_error)

    @app.exception_handler(ReceptionDeskException)
    async def infrastructure_error_handler(request: Request, exc: ReceptionDeskException):
        api_error = to_api_error(exc)
        req_id = getattr(request.state, "request_id", None)
        logger.error(
            f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message} | request_id={req_id}"
        )
        return _error_response(request, api_error)

    @app.exception_handler(RequestValidationError)
    async def pydantic_error_handler(request: Request, exc: RequestValidationError):
        req_id = getattr(request.state, "request_id", None)
        error_details = exc.errors()
        logger.warning(f"ValidationError on {request.method} {request.url.path}: {error_details} | request_id={req_id}")

        # Create user-friendly error message
        error_messages = []
        for error in error_details:
            loc = " -> ".join(str(x) for x in error.get("loc", []))
            msg = error.get("msg", "Validation error")
            error_messages.append(f"{loc}: {msg}")

        return JSONResponse(
            status_code=400,
            content=ErrorResponse(
                error="INVALID_INPUT",
                message=f"Input validation failed: {'; '.join(error_messages)}",
                request_id=req_id or "",
                details={
                    "errors": [{"loc": list(e.get("loc", [])), "msg": e.get("msg")} for e in error_details],
                    "path": request.url.path,
                },
            ).model_dump(),
        )

    @app.exception_handler(Exception)
    async def internal_error_handler(request: Request, exc: Exception):
        req_id = getattr(request.state, "request_id", None)
        logger.error(f"Unhandled error: {type(exc)} | request_id={req_id}", exc_info=exc)
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error="INTERNAL_ERROR",
                message="An unexpected error has occurred. Please try again later.",
                request_id=req_id or "",
            ).model_dump(),
        )

    @app.get("/", tags=["health"])
    async def root():
        """Root endpoint with API information."""
        return {
            "service": settings.app_name,
            "version": settings.app_version,
            "environment": settings.app_env,
            "status": "running",
            "docs": "/docs",
            "endpoints": {
                "health": "GET /api/health",
                "login": "POST /api/auth/login",
                "validate_session": "POST /api/auth/validate-session",
                "appointments": "GET|PATCH /api/appointments",
                "patient_queue": "GET|PATCH /api/patient-queue",
                "schedules": "GET|POST|DELETE /api/schedules",
                "notifications": "GET|PUT|DELETE /api/notifications",
                "doctors": "GET /api/doctors",
                "profile": "GET /api/profile",
                "relay": "WS /api/socket",
            },
        }

    return app


# Create the app instance
app = create_app()
