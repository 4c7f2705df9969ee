"""Appointment listing and status change endpoints."""

import logging
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Query, Request

from ...application.dto.reception_dto import UpdateAppointmentStatusRequest
from ..deps import (
    ListAppointmentsDep,
    OutboxDispatcherDep,
    SessionScopeDep,
    UpdateAppointmentStatusDep,
    drain_outbox_in_background,
)
from ..schemas.reception import UpdateAppointmentStatusBody
from ..utils.responses import ok

router = APIRouter(prefix="/appointments", tags=["Appointments"])
logger = logging.getLogger("receptiondesk")


@router.get("", summary="List appointments for one or more doctors")
async def list_appointments(
    request: Request,
    use_case: ListAppointmentsDep,
    scope: SessionScopeDep,
    doctor_id: Optional[List[str]] = Query(None, alias="doctorId"),
    status: Optional[str] = Query(None),
    date: Optional[str] = Query(None, description="YYYY-MM-DD"),
):
    """Sorted by appointment date, then time slot. Repeat doctorId for several doctors."""
    appointments = await use_case.execute(doctor_id or [], status, date, scope)
    return ok(
        request,
        message=f"Found {len(appointments)} appointments",
        appointments=[appointment.to_payload() for appointment in appointments],
    )


@router.patch("", summary="Confirm, reject or otherwise change an appointment's status")
async def update_appointment_status(
    request: Request,
    body: UpdateAppointmentStatusBody,
    background_tasks: BackgroundTasks,
    use_case: UpdateAppointmentStatusDep,
    dispatcher: OutboxDispatcherDep,
    scope: SessionScopeDep,
):
    result = await use_case.execute(
        UpdateAppointmentStatusRequest(
            appointment_id=body.appointment_id,
            status=body.status,
            rejection_reason=body.rejection_reason,
            doctor_id=body.doctor_id,
        ),
        scope,
    )
    if result.event_ids:
        # Side effects run after the response is sent
        background_tasks.add_task(drain_outbox_in_background, dispatcher)
    if result.changed:
        message = f"Appointment {result.appointment.status.value}"
    else:
        message = f"Appointment already {result.appointment.status.value}"
    return ok(request, message=message, appointment=result.appointment.to_payload())
