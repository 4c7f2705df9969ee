"""
MongoDB implementations of ScheduleRepository and CancelledAppointmentRepository.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from receptiondesk.application.ports.repositories.schedule_repo import (
    CancelledAppointmentRepository,
    ScheduleRepository,
)
from receptiondesk.core.utils.datetime_utils import utcnow
from receptiondesk.domain.entities.schedule import CancelledAppointment, DoctorSchedule
from receptiondesk.domain.value_objects import ObjectRef

from ..gateway import MongoGateway
from ..models.schedule_m import CancelledAppointmentMongo, DoctorScheduleMongo

logger = logging.getLogger(__name__)


def schedule_to_domain(document: DoctorScheduleMongo) -> DoctorSchedule:
    return DoctorSchedule(
        doctor_id=ObjectRef.parse(document.doctor_id),
        date=document.date,
        available_slots=list(document.available_slots),
        id=ObjectRef.parse(document.id) if document.id else None,
        created_at=document.created_at,
        updated_at=document.updated_at,
    )


class MongoScheduleRepository(ScheduleRepository):
    """MongoDB implementation of ScheduleRepository."""

    def __init__(self, gateway: MongoGateway):
        self._gateway = gateway

    @staticmethod
    def _collection():
        return DoctorScheduleMongo.get_pymongo_collection()

    async def list_for_doctors(
        self, doctor_ids: Sequence[ObjectRef], date: Optional[str] = None
    ) -> List[DoctorSchedule]:
        query: Dict[str, Any] = ObjectRef.filter("doctorId", doctor_ids)
        if date:
            query["date"] = date
        async with self._gateway.operation("schedules.list_for_doctors"):
            raw_documents = await self._collection().find(query).sort("date", 1).to_list(length=None)
        return [schedule_to_domain(DoctorScheduleMongo.model_validate(raw)) for raw in raw_documents]

    async def add_slot(self, doctor_id: ObjectRef, date: str, time_slot: str) -> DoctorSchedule:
        now = utcnow()
        query = {**ObjectRef.filter("doctorId", [doctor_id]), "date": date}
        update = {
            "$addToSet": {"availableSlots": time_slot},
            "$set": {"updatedAt": now},
            "$setOnInsert": {"doctorId": doctor_id.object_id, "createdAt": now},
        }
        async with self._gateway.operation("schedules.add_slot"):
            try:
                raw = await self._upsert(query, update)
            except DuplicateKeyError:
                # A concurrent upsert created the document first; it now matches
                raw = await self._upsert(query, update)
        return schedule_to_domain(DoctorScheduleMongo.model_validate(raw))

    async def _upsert(self, query: Dict[str, Any], update: Dict[str, Any]) -> Dict[str, Any]:
        return await self._collection().find_one_and_update(
            query, update, upsert=True, return_document=ReturnDocument.AFTER
        )

    async def remove_slot(self, doctor_id: ObjectRef, date: str, time_slot: str) -> bool:
        query = {**ObjectRef.filter("doctorId", [doctor_id]), "date": date}
        async with self._gateway.operation("schedules.remove_slot"):
            result = await self._collection().update_one(
                query, {"$pull": {"availableSlots": time_slot}, "$set": {"updatedAt": utcnow()}}
            )
        return result.matched_count > 0


class MongoCancelledAppointmentRepository(CancelledAppointmentRepository):
    """MongoDB implementation of CancelledAppointmentRepository."""

    def __init__(self, gateway: MongoGateway):
        self._gateway = gateway

    async def archive(self, record: CancelledAppointment) -> bool:
        document = CancelledAppointmentMongo(
            original_appointment_id=record.original_appointment_id.object_id,
            doctor_id=record.doctor_id.object_id,
            patient_name=record.patient_name,
            patient_email=record.patient_email,
            appointment_date=record.appointment_date,
            time_slot=record.time_slot,
            rejection_reason=record.rejection_reason,
            rejected_at=record.rejected_at,
            rejected_by=record.rejected_by,
        )
        async with self._gateway.operation("cancelled_appointments.archive"):
            try:
                await document.insert()
            except DuplicateKeyError:
                logger.info("Appointment %s already archived", record.original_appointment_id)
                return False
        return True
