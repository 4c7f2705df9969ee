"""
Common response envelopes shared by every router.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from ...core.utils.datetime_utils import utcnow


class BaseResponse(BaseModel):
    """Base response schema with common fields."""

    success: bool = Field(True, description="Operation success status")
    message: str = Field("", description="Response message")
    timestamp: str = Field(default_factory=lambda: utcnow().isoformat(), description="Response timestamp")
    request_id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Request ID for tracking")


class SuccessResponse(BaseResponse):
    """Success envelope; the payload travels in named extra fields (appointments, queueEntry, ...)."""

    model_config = ConfigDict(extra="allow")


class ErrorResponse(BaseModel):
    """Standardized error response schema."""

    success: bool = Field(False, description="Operation success status")
    error: str = Field(..., description="Error type/code")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error details")
    timestamp: str = Field(
        default_factory=lambda: utcnow().isoformat(),
        description="Error timestamp",
    )
    request_id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Request ID for tracking")


class DatabaseHealth(BaseModel):
    connected: bool
    ping: str
    response_time_ms: float = Field(..., alias="responseTimeMs")
    error: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str = Field(..., description="healthy or unhealthy")
    service: str
    version: str
    timestamp: datetime = Field(default_factory=utcnow)
    database: DatabaseHealth
    collections: Dict[str, int] = Field(default_factory=dict)
    outbox: Dict[str, int] = Field(default_factory=dict)
    relay: Dict[str, Any] = Field(default_factory=dict)
