"""
Outbox repository interface.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, Optional, Sequence

from ....domain.entities.outbox_event import OutboxEvent
from ....domain.enums import AppointmentStatus
from ....domain.value_objects import ObjectRef


class OutboxRepository(ABC):
    """Abstract repository for outbox events."""

    @abstractmethod
    async def add(self, events: Sequence[OutboxEvent]) -> None:
        """Record events outside of an appointment write unit."""
        pass

    @abstractmethod
    async def has_appointment_event(self, appointment_id: ObjectRef, status: AppointmentStatus) -> bool:
        """Whether any event records the appointment reaching status, whatever its outcome."""
        pass

    @abstractmethod
    async def claim_next(self, now: datetime, stale_before: datetime) -> Optional[OutboxEvent]:
        """Atomically move one due event to processing and return it.

        Due means pending with available_at <= now, or processing with a claim
        older than stale_before (a dispatcher died mid-event).
        """
        pass

    @abstractmethod
    async def mark_step_done(self, event_id: str, step: str, at: datetime) -> None:
        pass

    @abstractmethod
    async def mark_done(self, event_id: str, at: datetime) -> None:
        pass

    @abstractmethod
    async def schedule_retry(self, event_id: str, error: str, retry_at: datetime, at: datetime) -> None:
        """Back to pending with attempts incremented, due again at retry_at."""
        pass

    @abstractmethod
    async def mark_failed(self, event_id: str, error: str, at: datetime) -> None:
        """Park the event; it is no longer claimed."""
        pass

    @abstractmethod
    async def count_by_status(self) -> Dict[str, int]:
        pass
