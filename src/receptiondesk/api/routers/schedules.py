from typing import List, Optional

from fastapi import APIRouter, Query, Request

from ..deps import ManageSchedulesDep, SessionScopeDep
from ..schemas.reception import ScheduleSlotBody
from ..utils.responses import ok

router = APIRouter(prefix="/schedules", tags=["Schedules"])


@router.get("", summary="List doctor schedules")
async def list_schedules(
    request: Request,
    use_case: ManageSchedulesDep,
    scope: SessionScopeDep,
    doctor_id: Optional[List[str]] = Query(None, alias="doctorId"),
    date: Optional[str] = Query(None, description="YYYY-MM-DD"),
):
    schedules = await use_case.list(doctor_id or [], date, scope)
    return ok(
        request,
        message=f"Found {len(schedules)} schedules",
        schedules=[schedule.to_payload() for schedule in schedules],
    )


@router.post("", summary="Open a time slot (creates the day's schedule if needed)")
async def add_schedule_slot(
    request: Request, body: ScheduleSlotBody, use_case: ManageSchedulesDep, scope: SessionScopeDep
):
    schedule = await use_case.add_slot(body.doctor_id, body.date, body.time_slot, scope)
    return ok(request, message="Time slot added", schedule=schedule.to_payload())


@router.delete("", summary="Remove an open time slot")
async def remove_schedule_slot(
    request: Request, body: ScheduleSlotBody, use_case: ManageSchedulesDep, scope: SessionScopeDep
):
    await use_case.remove_slot(body.doctor_id, body.date, body.time_slot, scope)
    return ok(request, message="Time slot removed")
