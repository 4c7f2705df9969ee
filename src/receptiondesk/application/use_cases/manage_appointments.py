"""Appointment listing and status change use cases."""

import logging
from typing import List, Optional, Sequence

from ...core.utils.datetime_utils import parse_date_param, utcnow
from ...domain.entities.appointment import Appointment
from ...domain.entities.outbox_event import OutboxEvent
from ...domain.enums import AppointmentStatus, parse_enum
from ...domain.errors import (
    AppointmentNotFoundError,
    InvalidStatusTransitionError,
    MissingFieldError,
)
from ...domain.value_objects import ObjectRef
from ..dto.reception_dto import (
    SessionScope,
    UpdateAppointmentStatusRequest,
    UpdateAppointmentStatusResponse,
)
from ..ports.repositories.appointment_repo import AppointmentRepository
from ..ports.repositories.outbox_repo import OutboxRepository

logger = logging.getLogger(__name__)


class ListAppointmentsUseCase:
    """List appointments for one or more doctors."""

    def __init__(self, appointment_repository: AppointmentRepository):
        self._appointment_repository = appointment_repository

    async def execute(
        self,
        doctor_ids: Sequence[str],
        status: Optional[str] = None,
        date: Optional[str] = None,
        scope: SessionScope = SessionScope.unrestricted(),
    ) -> List[Appointment]:
        # All validation happens before the store is touched
        if not doctor_ids:
            raise MissingFieldError("doctorId")
        refs = ObjectRef.parse_many(doctor_ids, "doctorId")
        scope.check_all(refs)
        status_filter = (
            parse_enum(AppointmentStatus, status, "status") if status and status != "all" else None
        )
        date_filter = parse_date_param(date)

        return await self._appointment_repository.list_for_doctors(refs, status_filter, date_filter)


class UpdateAppointmentStatusUseCase:
    """Move an appointment to a new status and record the side effects it owes.

    The status write is a compare-and-set on the status that was read, so
    two concurrent confirmations cannot both succeed. Re-sending the current
    status changes nothing; it records the events again only when the outbox
    holds none for that status, which happens when they were lost after a
    non-transactional status write.
    """

    def __init__(self, appointment_repository: AppointmentRepository, outbox_repository: OutboxRepository):
        self._appointment_repository = appointment_repository
        self._outbox_repository = outbox_repository

    async def execute(
        self,
        request: UpdateAppointmentStatusRequest,
        scope: SessionScope = SessionScope.unrestricted(),
    ) -> UpdateAppointmentStatusResponse:
        if not request.appointment_id:
            raise MissingFieldError("appointmentId")
        if not request.status:
            raise MissingFieldError("status")
        appointment_id = ObjectRef.parse(request.appointment_id, "appointmentId")
        target = parse_enum(AppointmentStatus, request.status, "status")
        doctor_id = ObjectRef.parse(request.doctor_id, "doctorId") if request.doctor_id else None

        appointment = await self._appointment_repository.find_by_id(appointment_id)
        if appointment is None:
            raise AppointmentNotFoundError(appointment_id.value)
        if doctor_id is not None and doctor_id != appointment.doctor_id:
            logger.warning(
                "Appointment %s belongs to doctor %s, request named %s",
                appointment_id,
                appointment.doctor_id,
                doctor_id,
            )
            raise AppointmentNotFoundError(appointment_id.value)
        scope.check(appointment.doctor_id)

        if appointment.status == target:
            event_ids = await self._record_missing_events(appointment)
            return UpdateAppointmentStatusResponse(appointment=appointment, changed=False, event_ids=event_ids)

        now = utcnow()
        updated = appointment.with_status(target, request.rejection_reason, now)
        event = OutboxEvent.for_appointment_change(updated, appointment.status, now)

        stored = await self._appointment_repository.transition_status(
            appointment_id,
            expected=appointment.status,
            target=target,
            rejection_reason=updated.rejection_reason,
            at=now,
            events=[event],
        )
        if stored is None:
            # Lost a race with another update of the same appointment
            current = await self._appointment_repository.find_by_id(appointment_id)
            if current is not None and current.status == target:
                return UpdateAppointmentStatusResponse(appointment=current, changed=False)
            raise InvalidStatusTransitionError(
                "appointment", current.status.value if current else "unknown", target.value
            )

        logger.info(
            "Appointment %s: %s -> %s (event %s)",
            appointment_id,
            appointment.status.value,
            target.value,
            event.event_id,
        )
        return UpdateAppointmentStatusResponse(appointment=stored, changed=True, event_ids=[event.event_id])

    async def _record_missing_events(self, appointment: Appointment) -> List[str]:
        if appointment.status == AppointmentStatus.PENDING:
            return []
        if await self._outbox_repository.has_appointment_event(appointment.id, appointment.status):
            return []
        event = OutboxEvent.for_appointment_change(appointment, appointment.status, utcnow())
        await self._outbox_repository.add([event])
        logger.warning(
            "Appointment %s is %s with no recorded side effects; recorded event %s",
            appointment.id,
            appointment.status.value,
            event.event_id,
        )
        return [event.event_id]
