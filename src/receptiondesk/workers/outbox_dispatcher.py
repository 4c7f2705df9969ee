"""
Outbox dispatcher: performs the side effects recorded with each mutation.

Each event kind has an ordered list of idempotent steps (queue entry,
schedule slot, archive, notification, relay publish). Completed steps are
recorded on the event so a retry resumes after the last one that succeeded.
Failures are retried with backoff and finally parked as ``failed``.
"""

import asyncio
import logging
from datetime import timedelta
from typing import Any, Dict, Optional

from receptiondesk.application.ports.repositories.notification_repo import NotificationRepository
from receptiondesk.application.ports.repositories.outbox_repo import OutboxRepository
from receptiondesk.application.ports.repositories.patient_queue_repo import PatientQueueRepository
from receptiondesk.application.ports.repositories.schedule_repo import (
    CancelledAppointmentRepository,
    ScheduleRepository,
)
from receptiondesk.application.ports.services.realtime_publisher import (
    APPOINTMENT_UPDATE,
    QUEUE_UPDATE,
    RealtimePublisher,
)
from receptiondesk.core.config import OutboxSettings
from receptiondesk.core.utils.datetime_utils import utcnow
from receptiondesk.domain.entities.appointment import Appointment
from receptiondesk.domain.entities.notification import Notification
from receptiondesk.domain.entities.outbox_event import (
    STEP_ARCHIVE,
    STEP_NOTIFICATION,
    STEP_PUBLISH_APPOINTMENT,
    STEP_PUBLISH_QUEUE,
    STEP_QUEUE_ENTRY,
    STEP_RELEASE_SLOT,
    STEP_RESTORE_SLOT,
    OutboxEvent,
)
from receptiondesk.domain.entities.patient_queue_entry import PatientQueueEntry
from receptiondesk.domain.entities.schedule import CancelledAppointment
from receptiondesk.domain.enums import OutboxEventKind, OutboxStatus
from receptiondesk.observability.metrics import record_outbox_event, record_outbox_step
from receptiondesk.observability.tracing import trace_operation

logger = logging.getLogger("receptiondesk")


class OutboxDispatcher:
    """Drains due outbox events one claim at a time."""

    def __init__(
        self,
        outbox: OutboxRepository,
        queue: PatientQueueRepository,
        schedules: ScheduleRepository,
        archive: CancelledAppointmentRepository,
        notifications: NotificationRepository,
        publisher: RealtimePublisher,
        settings: OutboxSettings,
    ):
        self._outbox = outbox
        self._queue = queue
        self._schedules = schedules
        self._archive = archive
        self._notifications = notifications
        self._publisher = publisher
        self._settings = settings

    async def drain(self, limit: Optional[int] = None) -> int:
        """Process due events until none are left or limit is reached; returns the count handled."""
        limit = limit or self._settings.batch_size
        handled = 0
        # Concurrent drains are safe: each claim is atomic
        while handled < limit:
            now = utcnow()
            stale_before = now - timedelta(seconds=self._settings.processing_stale_seconds)
            event = await self._outbox.claim_next(now, stale_before)
            if event is None:
                break
            await self.process(event)
            handled += 1
        if handled:
            logger.info("[Outbox] Drained %d event(s)", handled)
        return handled

    async def process(self, event: OutboxEvent) -> OutboxStatus:
        """Run the remaining steps of a claimed event and record the outcome."""
        for step in event.remaining_steps:
            try:
                with trace_operation("outbox.step", {"step": step, "kind": event.kind.value}):
                    await self._run_step(event, step)
            except Exception as exc:  # noqa: BLE001
                record_outbox_step(step, success=False)
                return await self._record_failure(event, step, exc)
            record_outbox_step(step, success=True)
            await self._outbox.mark_step_done(event.event_id, step, utcnow())
            event.completed_steps.append(step)

        await self._outbox.mark_done(event.event_id, utcnow())
        record_outbox_event(event.kind.value, OutboxStatus.DONE.value)
        logger.info("[Outbox] Event %s (%s) done", event.event_id, event.kind.value)
        return OutboxStatus.DONE

    async def _record_failure(self, event: OutboxEvent, step: str, exc: Exception) -> OutboxStatus:
        error = f"{step}: {type(exc).__name__}: {exc}"
        attempt = event.attempts + 1
        now = utcnow()
        if attempt >= self._settings.max_attempts:
            logger.error(
                "[Outbox] Event %s (%s) failed permanently after %d attempts: %s",
                event.event_id,
                event.kind.value,
                attempt,
                error,
                exc_info=exc,
            )
            await self._outbox.mark_failed(event.event_id, error, now)
            record_outbox_event(event.kind.value, OutboxStatus.FAILED.value)
            return OutboxStatus.FAILED

        retry_at = now + timedelta(seconds=self.backoff_for(attempt))
        logger.warning(
            "[Outbox] Event %s (%s) attempt %d failed at step %s, retrying at %s: %s",
            event.event_id,
            event.kind.value,
            attempt,
            step,
            retry_at.isoformat(),
            exc,
        )
        await self._outbox.schedule_retry(event.event_id, error, retry_at, now)
        return OutboxStatus.PENDING

    def backoff_for(self, attempt: int) -> float:
        """Delay before retry number attempt (1-based); the last configured value repeats."""
        schedule = self._settings.retry_backoff_seconds or [0.0]
        return schedule[min(attempt, len(schedule)) - 1]

    async def _run_step(self, event: OutboxEvent, step: str) -> None:
        if step == STEP_PUBLISH_APPOINTMENT:
            appointment = self._require_appointment(event)
            await self._publisher.publish(event.doctor_id.value, APPOINTMENT_UPDATE, appointment.to_payload())
            return
        if step == STEP_PUBLISH_QUEUE:
            await self._publisher.publish(event.doctor_id.value, QUEUE_UPDATE, await self._queue_payload(event))
            return

        appointment = self._require_appointment(event)
        at = event.created_at or utcnow()
        if step == STEP_QUEUE_ENTRY:
            created = await self._queue.create(PatientQueueEntry.from_appointment(appointment, at))
            logger.info(
                "[Outbox] Queue entry for %s %s", appointment.key, "created" if created else "already exists"
            )
        elif step == STEP_RELEASE_SLOT:
            await self._schedules.remove_slot(
                appointment.doctor_id, appointment.appointment_date, appointment.time_slot
            )
        elif step == STEP_RESTORE_SLOT:
            await self._schedules.add_slot(
                appointment.doctor_id, appointment.appointment_date, appointment.time_slot
            )
        elif step == STEP_ARCHIVE:
            await self._archive.archive(CancelledAppointment.from_appointment(appointment, at))
        elif step == STEP_NOTIFICATION:
            await self._notifications.create_once(Notification.for_decision(appointment, event.event_id, at))
        else:
            raise ValueError(f"Unknown outbox step '{step}'")

    @staticmethod
    def _require_appointment(event: OutboxEvent) -> Appointment:
        appointment = event.appointment
        if appointment is None:
            raise ValueError(f"Outbox event {event.event_id} carries no appointment")
        return appointment

    async def _queue_payload(self, event: OutboxEvent) -> Dict[str, Any]:
        if event.kind == OutboxEventKind.QUEUE_UPDATED:
            return event.payload.get("queueEntry", {})
        appointment = self._require_appointment(event)
        entry = await self._queue.find_by_key(appointment.key)
        if entry is None:
            entry = PatientQueueEntry.from_appointment(appointment, event.created_at or utcnow())
        return entry.to_payload()


async def run_outbox_dispatcher_forever(dispatcher: OutboxDispatcher, settings: OutboxSettings) -> None:
    """
    Periodically drain leftovers and reclaim stale claims, controlled by OUTBOX_* settings.
    """
    if not settings.enabled:
        logger.info("[Outbox] Periodic dispatcher disabled via OUTBOX_ENABLED")
        return

    interval = max(1.0, settings.interval_seconds)
    logger.info(
        "[Outbox] Starting periodic dispatcher (interval=%ss, batch=%s, max_attempts=%s)",
        interval,
        settings.batch_size,
        settings.max_attempts,
    )
    while True:
        try:
            await dispatcher.drain()
        except Exception as e:  # noqa: BLE001
            logger.error("[Outbox] Drain iteration failed: %s", e, exc_info=True)
        await asyncio.sleep(interval)
