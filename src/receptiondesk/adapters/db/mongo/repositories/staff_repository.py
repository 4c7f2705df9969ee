"""
MongoDB implementations of DoctorRepository and ReceptionistRepository.
"""

import logging
import re
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from pymongo import ReturnDocument

from receptiondesk.application.ports.repositories.staff_repo import DoctorRepository, ReceptionistRepository
from receptiondesk.domain.entities.doctor import Doctor
from receptiondesk.domain.entities.receptionist import Receptionist
from receptiondesk.domain.errors import DomainError
from receptiondesk.domain.value_objects import ObjectRef

from ..gateway import MongoGateway
from ..models.staff_m import DoctorMongo, ReceptionistMongo

logger = logging.getLogger(__name__)


def _email_query(email: str) -> Dict[str, Any]:
    # Stored emails are not consistently lower-cased
    return {"email": {"$regex": f"^{re.escape(email)}$", "$options": "i"}}


def doctor_to_domain(document: DoctorMongo) -> Doctor:
    return Doctor(
        id=ObjectRef.parse(document.id),
        name=document.name,
        specialization=document.specialization,
        email=document.email,
        phone=document.phone,
        department=document.department,
        created_at=document.created_at,
        updated_at=document.updated_at,
    )


def receptionist_to_domain(document: ReceptionistMongo) -> Receptionist:
    linked: List[ObjectRef] = []
    for raw in document.linked_doctor_ids:
        if not ObjectRef.is_valid(raw):
            logger.warning("Receptionist %s has a malformed linked doctor id %r", document.id, raw)
            continue
        ref = ObjectRef.parse(raw)
        if ref not in linked:
            linked.append(ref)
    return Receptionist(
        id=ObjectRef.parse(document.id),
        email=document.email,
        name=document.name,
        phone=document.phone,
        password_hash=document.password_hash,
        linked_doctor_ids=linked,
        status=document.status,
        last_login=document.last_login,
        created_at=document.created_at,
        updated_at=document.updated_at,
    )


class MongoDoctorRepository(DoctorRepository):
    """MongoDB implementation of DoctorRepository."""

    def __init__(self, gateway: MongoGateway):
        self._gateway = gateway

    async def _read(self, query: Dict[str, Any], operation: str) -> List[Doctor]:
        async with self._gateway.operation(operation):
            raw_documents = await DoctorMongo.get_pymongo_collection().find(query).to_list(length=None)
        doctors: List[Doctor] = []
        for raw in raw_documents:
            try:
                doctors.append(doctor_to_domain(DoctorMongo.model_validate(raw)))
            except (DomainError, ValueError) as exc:
                logger.warning("Skipping unreadable doctor %s: %s", raw.get("_id"), exc)
        return doctors

    async def list_all(self) -> List[Doctor]:
        doctors = await self._read({}, "doctors.list_all")
        return sorted(doctors, key=lambda d: d.name.lower())

    async def find_many(self, doctor_ids: Sequence[ObjectRef]) -> List[Doctor]:
        if not doctor_ids:
            return []
        found = {d.id: d for d in await self._read(ObjectRef.filter("_id", doctor_ids), "doctors.find_many")}
        return [found[ref] for ref in doctor_ids if ref in found]

    async def upsert(self, doctor: Doctor) -> bool:
        replacement = {
            "_id": doctor.id.object_id,
            "name": doctor.name,
            "specialization": doctor.specialization,
            "email": doctor.email,
            "phone": doctor.phone,
            "department": doctor.department,
            "createdAt": doctor.created_at,
            "updatedAt": doctor.updated_at,
        }
        async with self._gateway.operation("doctors.upsert"):
            result = await DoctorMongo.get_pymongo_collection().replace_one(
                {"_id": doctor.id.object_id}, replacement, upsert=True
            )
        return result.upserted_id is not None


class MongoReceptionistRepository(ReceptionistRepository):
    """MongoDB implementation of ReceptionistRepository."""

    def __init__(self, gateway: MongoGateway):
        self._gateway = gateway

    @staticmethod
    def _collection():
        return ReceptionistMongo.get_pymongo_collection()

    async def find_by_email(self, email: str) -> Optional[Receptionist]:
        async with self._gateway.operation("receptionists.find_by_email"):
            raw = await self._collection().find_one(_email_query(email))
        return receptionist_to_domain(ReceptionistMongo.model_validate(raw)) if raw else None

    async def find_by_id(self, receptionist_id: ObjectRef) -> Optional[Receptionist]:
        async with self._gateway.operation("receptionists.find_by_id"):
            raw = await self._collection().find_one({"_id": receptionist_id.object_id})
        return receptionist_to_domain(ReceptionistMongo.model_validate(raw)) if raw else None

    async def record_login(
        self, receptionist_id: ObjectRef, at: datetime, password_hash: Optional[str] = None
    ) -> None:
        changes: Dict[str, Any] = {"lastLogin": at}
        if password_hash:
            changes["passwordHash"] = password_hash
            changes["updatedAt"] = at
        async with self._gateway.operation("receptionists.record_login"):
            await self._collection().update_one({"_id": receptionist_id.object_id}, {"$set": changes})

    async def set_linked_doctors(
        self, email: str, doctor_ids: Sequence[ObjectRef], at: datetime
    ) -> Optional[Receptionist]:
        async with self._gateway.operation("receptionists.set_linked_doctors"):
            raw = await self._collection().find_one_and_update(
                _email_query(email),
                {"$set": {"linked_doctor_ids": [ref.object_id for ref in doctor_ids], "updatedAt": at}},
                return_document=ReturnDocument.AFTER,
            )
        return receptionist_to_domain(ReceptionistMongo.model_validate(raw)) if raw else None
