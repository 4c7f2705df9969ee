"""
MongoDB implementation of OutboxRepository.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional, Sequence

from pymongo import ReturnDocument

from receptiondesk.application.ports.repositories.outbox_repo import OutboxRepository
from receptiondesk.domain.entities.outbox_event import OutboxEvent
from receptiondesk.domain.enums import AppointmentStatus, OutboxEventKind, OutboxStatus
from receptiondesk.domain.value_objects import ObjectRef

from ..gateway import MongoGateway
from ..models.outbox_event_m import OutboxEventMongo

logger = logging.getLogger(__name__)


def outbox_event_to_document(event: OutboxEvent) -> Dict[str, Any]:
    """Raw document for insertion, also used inside the appointment write unit."""
    return {
        "eventId": event.event_id,
        "kind": event.kind.value,
        "doctorId": event.doctor_id.object_id,
        "payload": event.payload,
        "status": event.status.value,
        "attempts": event.attempts,
        "completedSteps": list(event.completed_steps),
        "lastError": event.last_error,
        "availableAt": event.available_at or event.created_at,
        "claimedAt": None,
        "createdAt": event.created_at,
        "updatedAt": event.updated_at,
    }


def outbox_event_to_domain(document: OutboxEventMongo) -> OutboxEvent:
    return OutboxEvent(
        kind=OutboxEventKind(document.kind),
        doctor_id=ObjectRef.parse(document.doctor_id),
        payload=document.payload,
        event_id=document.event_id,
        status=OutboxStatus(document.status),
        attempts=document.attempts,
        completed_steps=list(document.completed_steps),
        last_error=document.last_error,
        available_at=document.available_at,
        created_at=document.created_at,
        updated_at=document.updated_at,
    )


class MongoOutboxRepository(OutboxRepository):
    """MongoDB implementation of OutboxRepository."""

    def __init__(self, gateway: MongoGateway):
        self._gateway = gateway

    @staticmethod
    def _collection():
        return OutboxEventMongo.get_pymongo_collection()

    async def add(self, events: Sequence[OutboxEvent]) -> None:
        if not events:
            return
        async with self._gateway.operation("outbox.add"):
            await self._collection().insert_many([outbox_event_to_document(e) for e in events])

    async def has_appointment_event(self, appointment_id: ObjectRef, status: AppointmentStatus) -> bool:
        async with self._gateway.operation("outbox.has_appointment_event"):
            count = await self._collection().count_documents(
                {"payload.appointment._id": appointment_id.value, "payload.appointment.status": status.value},
                limit=1,
            )
        return count > 0

    async def claim_next(self, now: datetime, stale_before: datetime) -> Optional[OutboxEvent]:
        async with self._gateway.operation("outbox.claim_next"):
            raw = await self._collection().find_one_and_update(
                {
                    "$or": [
                        {"status": OutboxStatus.PENDING.value, "availableAt": {"$lte": now}},
                        {"status": OutboxStatus.PROCESSING.value, "claimedAt": {"$lte": stale_before}},
                    ]
                },
                {"$set": {"status": OutboxStatus.PROCESSING.value, "claimedAt": now, "updatedAt": now}},
                sort=[("availableAt", 1)],
                return_document=ReturnDocument.AFTER,
            )
        if raw is None:
            return None
        return outbox_event_to_domain(OutboxEventMongo.model_validate(raw))

    async def mark_step_done(self, event_id: str, step: str, at: datetime) -> None:
        async with self._gateway.operation("outbox.mark_step_done"):
            await self._collection().update_one(
                {"eventId": event_id},
                {"$addToSet": {"completedSteps": step}, "$set": {"updatedAt": at}},
            )

    async def mark_done(self, event_id: str, at: datetime) -> None:
        async with self._gateway.operation("outbox.mark_done"):
            await self._collection().update_one(
                {"eventId": event_id},
                {"$set": {"status": OutboxStatus.DONE.value, "lastError": None, "updatedAt": at}},
            )

    async def schedule_retry(self, event_id: str, error: str, retry_at: datetime, at: datetime) -> None:
        async with self._gateway.operation("outbox.schedule_retry"):
            await self._collection().update_one(
                {"eventId": event_id},
                {
                    "$set": {
                        "status": OutboxStatus.PENDING.value,
                        "lastError": error,
                        "availableAt": retry_at,
                        "claimedAt": None,
                        "updatedAt": at,
                    },
                    "$inc": {"attempts": 1},
                },
            )

    async def mark_failed(self, event_id: str, error: str, at: datetime) -> None:
        async with self._gateway.operation("outbox.mark_failed"):
            await self._collection().update_one(
                {"eventId": event_id},
                {
                    "$set": {"status": OutboxStatus.FAILED.value, "lastError": error, "updatedAt": at},
                    "$inc": {"attempts": 1},
                },
            )

    async def count_by_status(self) -> Dict[str, int]:
        counts = {status.value: 0 for status in OutboxStatus}
        async with self._gateway.operation("outbox.count_by_status"):
            cursor = await self._collection().aggregate([{"$group": {"_id": "$status", "count": {"$sum": 1}}}])
            async for row in cursor:
                counts[str(row["_id"])] = row["count"]
        return counts
