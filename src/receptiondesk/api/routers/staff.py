"""Doctor directory, receptionist profile and admin linkage endpoints."""

from typing import Optional

from fastapi import APIRouter, Query, Request

from ..deps import AdminUserDep, LinkDoctorsDep, ListDoctorsDep, ReceptionistProfileDep, SeedDoctorsDep
from ..schemas.reception import LinkDoctorsBody
from ..utils.responses import ok

router = APIRouter(tags=["Staff"])


@router.get("/doctors", summary="List doctors")
async def list_doctors(request: Request, use_case: ListDoctorsDep):
    doctors = await use_case.execute()
    return ok(request, message=f"Found {len(doctors)} doctors", doctors=[d.to_payload() for d in doctors])


@router.post("/doctors/seed", summary="Upsert the sample doctors (admin)")
async def seed_doctors(request: Request, use_case: SeedDoctorsDep, admin: AdminUserDep):
    result = await use_case.execute()
    return ok(request, message="Sample doctors seeded", **result)


@router.get("/profile", summary="Receptionist profile with linked doctors")
async def get_profile(
    request: Request, use_case: ReceptionistProfileDep, email: Optional[str] = Query(None)
):
    receptionist, doctors = await use_case.execute(email)
    return ok(
        request,
        message="Profile loaded",
        receptionist=receptionist.to_profile(),
        linkedDoctors=[doctor.to_payload() for doctor in doctors],
    )


@router.put("/receptionists/linked-doctors", summary="Replace a receptionist's linked doctors (admin)")
async def link_doctors(request: Request, body: LinkDoctorsBody, use_case: LinkDoctorsDep, admin: AdminUserDep):
    receptionist = await use_case.execute(body.email, body.doctor_ids)
    return ok(request, message="Linked doctors updated", receptionist=receptionist.to_profile())
