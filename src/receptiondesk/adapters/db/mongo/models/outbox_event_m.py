"""MongoDB Beanie model for outbox events."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from beanie import Document, PydanticObjectId
from pydantic import ConfigDict, Field
from pymongo import ASCENDING, IndexModel

from receptiondesk.core.utils.datetime_utils import utcnow
from receptiondesk.domain.enums import OutboxEventKind, OutboxStatus


class OutboxEventMongo(Document):
    """Side effects still owed for a committed mutation."""

    model_config = ConfigDict(populate_by_name=True)

    event_id: str = Field(..., alias="eventId")
    kind: OutboxEventKind
    doctor_id: PydanticObjectId = Field(..., alias="doctorId")
    payload: Dict[str, Any] = Field(default_factory=dict)
    status: OutboxStatus = Field(default=OutboxStatus.PENDING)
    attempts: int = 0
    completed_steps: List[str] = Field(default_factory=list, alias="completedSteps")
    last_error: Optional[str] = Field(None, alias="lastError")
    available_at: datetime = Field(default_factory=utcnow, alias="availableAt")
    claimed_at: Optional[datetime] = Field(None, alias="claimedAt")
    created_at: datetime = Field(default_factory=utcnow, alias="createdAt")
    updated_at: datetime = Field(default_factory=utcnow, alias="updatedAt")

    class Settings:
        name = "outbox_events"
        indexes = [
            IndexModel([("eventId", ASCENDING)], unique=True, name="eventId_unique"),
            IndexModel([("status", ASCENDING), ("availableAt", ASCENDING)]),
            IndexModel([("payload.appointment._id", ASCENDING)]),
        ]
