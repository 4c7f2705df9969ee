"""Doctor directory, receptionist profile and doctor linkage use cases."""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from ...core.utils.datetime_utils import utcnow
from ...domain.entities.doctor import Doctor
from ...domain.entities.receptionist import Receptionist
from ...domain.errors import InvalidFieldValueError, MissingFieldError, ReceptionistNotFoundError
from ...domain.value_objects import ObjectRef
from ..ports.repositories.staff_repo import DoctorRepository, ReceptionistRepository

logger = logging.getLogger(__name__)

# Sample doctors the front desk is provisioned with; ids match existing receptionist links
SAMPLE_DOCTORS = (
    {
        "id": "68c15cac7a7bea4f6c332685",
        "name": "Dr. Ahmed Khan",
        "specialization": "Cardiology",
        "email": "ahmed.khan@clinic.com",
        "phone": "+92300123456",
    },
    {
        "id": "68c195256b30441fa3cab701",
        "name": "Dr. Sarah Ali",
        "specialization": "Pediatrics",
        "email": "sarah.ali@clinic.com",
        "phone": "+92301234567",
    },
)


class ListDoctorsUseCase:
    def __init__(self, doctor_repository: DoctorRepository):
        self._doctor_repository = doctor_repository

    async def execute(self) -> List[Doctor]:
        return await self._doctor_repository.list_all()


class SeedDoctorsUseCase:
    """Upsert the sample doctors by their fixed ids."""

    def __init__(self, doctor_repository: DoctorRepository):
        self._doctor_repository = doctor_repository

    async def execute(self) -> Dict[str, int]:
        now = utcnow()
        inserted = 0
        for sample in SAMPLE_DOCTORS:
            doctor = Doctor(
                id=ObjectRef(sample["id"]),
                name=sample["name"],
                specialization=sample["specialization"],
                email=sample["email"],
                phone=sample["phone"],
                created_at=now,
                updated_at=now,
            )
            if await self._doctor_repository.upsert(doctor):
                inserted += 1
        result = {"insertedCount": inserted, "modifiedCount": len(SAMPLE_DOCTORS) - inserted}
        logger.info("Seeded sample doctors: %s", result)
        return result


class GetReceptionistProfileUseCase:
    def __init__(self, receptionist_repository: ReceptionistRepository, doctor_repository: DoctorRepository):
        self._receptionist_repository = receptionist_repository
        self._doctor_repository = doctor_repository

    async def execute(self, email: Optional[str]) -> Tuple[Receptionist, List[Doctor]]:
        if not email or not email.strip():
            raise MissingFieldError("email")
        normalized = email.strip().lower()
        receptionist = await self._receptionist_repository.find_by_email(normalized)
        if receptionist is None:
            raise ReceptionistNotFoundError(normalized)
        doctors = await self._doctor_repository.find_many(receptionist.linked_doctor_ids)
        return receptionist, doctors


class LinkDoctorsUseCase:
    """Replace a receptionist's linked doctors; ids are stored in canonical form."""

    def __init__(self, receptionist_repository: ReceptionistRepository, doctor_repository: DoctorRepository):
        self._receptionist_repository = receptionist_repository
        self._doctor_repository = doctor_repository

    async def execute(self, email: Optional[str], doctor_ids: Optional[Sequence[str]]) -> Receptionist:
        if not email or not email.strip():
            raise MissingFieldError("email")
        if doctor_ids is None:
            raise MissingFieldError("doctorIds")
        refs = ObjectRef.parse_many(doctor_ids, "doctorIds")

        known = {doctor.id for doctor in await self._doctor_repository.find_many(refs)}
        unknown = [ref.value for ref in refs if ref not in known]
        if unknown:
            raise InvalidFieldValueError("doctorIds", unknown)

        normalized = email.strip().lower()
        updated = await self._receptionist_repository.set_linked_doctors(normalized, refs, utcnow())
        if updated is None:
            raise ReceptionistNotFoundError(normalized)
        logger.info("Linked receptionist %s to %d doctors", normalized, len(refs))
        return updated
