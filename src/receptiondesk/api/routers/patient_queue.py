"""Patient queue endpoints."""

from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Query, Request

from ...application.dto.reception_dto import UpdateQueueEntryRequest
from ..deps import (
    ListPatientQueueDep,
    OutboxDispatcherDep,
    SessionScopeDep,
    UpdateQueueEntryDep,
    drain_outbox_in_background,
)
from ..schemas.reception import UpdateQueueEntryBody
from ..utils.responses import ok

router = APIRouter(prefix="/patient-queue", tags=["Patient Queue"])


@router.get("", summary="List the waiting queue ordered by session start time")
async def list_patient_queue(
    request: Request,
    use_case: ListPatientQueueDep,
    scope: SessionScopeDep,
    doctor_id: Optional[List[str]] = Query(None, alias="doctorId"),
    queue_status: Optional[str] = Query(None, alias="queueStatus"),
):
    entries = await use_case.execute(doctor_id or [], queue_status, scope)
    return ok(
        request,
        message=f"Found {len(entries)} queue entries",
        patientQueue=[entry.to_payload() for entry in entries],
    )


@router.patch("", summary="Update a queue entry's queue status and/or appointment status")
async def update_queue_entry(
    request: Request,
    body: UpdateQueueEntryBody,
    background_tasks: BackgroundTasks,
    use_case: UpdateQueueEntryDep,
    dispatcher: OutboxDispatcherDep,
    scope: SessionScopeDep,
):
    result = await use_case.execute(
        UpdateQueueEntryRequest(
            appointment_key=body.appointment_key,
            queue_status=body.queue_status,
            status=body.status,
        ),
        scope,
    )
    if result.event_ids:
        background_tasks.add_task(drain_outbox_in_background, dispatcher)
    return ok(
        request,
        message="Queue entry updated" if result.changed else "Queue entry unchanged",
        queueEntry=result.queue_entry.to_payload(),
    )
