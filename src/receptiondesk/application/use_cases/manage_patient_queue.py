"""Patient queue use cases."""

import logging
from typing import List, Optional, Sequence

from ...core.exceptions import DatabaseError
from ...core.utils.datetime_utils import convert_to_24_hour, utcnow
from ...domain.entities.outbox_event import OutboxEvent
from ...domain.entities.patient_queue_entry import PatientQueueEntry
from ...domain.enums import AppointmentStatus, QueueStatus, parse_enum
from ...domain.errors import MissingFieldError, QueueEntryNotFoundError
from ...domain.value_objects import ObjectRef
from ..dto.reception_dto import SessionScope, UpdateQueueEntryRequest, UpdateQueueEntryResponse
from ..ports.repositories.outbox_repo import OutboxRepository
from ..ports.repositories.patient_queue_repo import PatientQueueRepository

logger = logging.getLogger(__name__)


class ListPatientQueueUseCase:
    def __init__(self, queue_repository: PatientQueueRepository):
        self._queue_repository = queue_repository

    async def execute(
        self,
        doctor_ids: Sequence[str],
        queue_status: Optional[str] = None,
        scope: SessionScope = SessionScope.unrestricted(),
    ) -> List[PatientQueueEntry]:
        """Queue entries ordered by session start time (12h and 24h formats mixed)."""
        if not doctor_ids:
            raise MissingFieldError("doctorId")
        refs = ObjectRef.parse_many(doctor_ids, "doctorId")
        scope.check_all(refs)
        status_filter = (
            parse_enum(QueueStatus, queue_status, "queueStatus")
            if queue_status and queue_status != "all"
            else None
        )

        entries = await self._queue_repository.list_for_doctors(refs, status_filter)
        return sorted(entries, key=lambda entry: convert_to_24_hour(entry.session_start_time))


class UpdateQueueEntryUseCase:
    def __init__(self, queue_repository: PatientQueueRepository, outbox_repository: OutboxRepository):
        self._queue_repository = queue_repository
        self._outbox_repository = outbox_repository

    async def execute(
        self,
        request: UpdateQueueEntryRequest,
        scope: SessionScope = SessionScope.unrestricted(),
    ) -> UpdateQueueEntryResponse:
        if not request.appointment_key or not request.appointment_key.strip():
            raise MissingFieldError("appointmentKey")
        if not request.queue_status and not request.status:
            raise MissingFieldError("queueStatus")
        queue_status = (
            parse_enum(QueueStatus, request.queue_status, "queueStatus") if request.queue_status else None
        )
        status = parse_enum(AppointmentStatus, request.status, "status") if request.status else None

        key = request.appointment_key.strip()
        entry = await self._queue_repository.find_by_key(key)
        if entry is None:
            raise QueueEntryNotFoundError(key)
        scope.check(entry.doctor_id)

        if (queue_status is None or queue_status == entry.queue_status) and (
            status is None or status == entry.status
        ):
            return UpdateQueueEntryResponse(queue_entry=entry, changed=False)

        now = utcnow()
        saved = await self._queue_repository.save_changes(entry.with_changes(queue_status, status, now))
        if saved is None:
            raise QueueEntryNotFoundError(key)

        # The queue status is committed; a lost event only costs the live update
        event = OutboxEvent.for_queue_change(saved, now)
        event_ids: List[str] = []
        try:
            await self._outbox_repository.add([event])
            event_ids.append(event.event_id)
        except DatabaseError as e:
            logger.error("Queue entry %s saved but its update event was not recorded: %s", key, e.message)

        logger.info("Queue entry %s updated to %s/%s", key, saved.queue_status.value, saved.status.value)
        return UpdateQueueEntryResponse(queue_entry=saved, changed=True, event_ids=event_ids)
