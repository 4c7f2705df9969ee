"""
MongoDB implementation of PatientQueueRepository.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from receptiondesk.application.ports.repositories.patient_queue_repo import PatientQueueRepository
from receptiondesk.domain.entities.patient_queue_entry import PatientQueueEntry
from receptiondesk.domain.enums import AppointmentStatus, QueueStatus
from receptiondesk.domain.value_objects import ObjectRef

from ..gateway import MongoGateway
from ..models.patient_queue_m import PatientQueueMongo

logger = logging.getLogger(__name__)


def queue_entry_to_domain(document: PatientQueueMongo) -> PatientQueueEntry:
    return PatientQueueEntry(
        appointment_key=document.appointment_key,
        doctor_id=ObjectRef.parse(document.doctor_id),
        id=ObjectRef.parse(document.id) if document.id else None,
        doctor_name=document.doctor_name,
        patient_id=ObjectRef.parse(document.patient_id) if document.patient_id else None,
        patient_name=document.patient_name,
        patient_phone=document.patient_phone,
        appointment_date=document.appointment_date,
        session_start_time=document.session_start_time,
        status=AppointmentStatus(document.status),
        queue_status=QueueStatus(document.queue_status),
        created_at=document.created_at,
        updated_at=document.updated_at,
    )


class MongoPatientQueueRepository(PatientQueueRepository):
    """MongoDB implementation of PatientQueueRepository."""

    def __init__(self, gateway: MongoGateway):
        self._gateway = gateway

    @staticmethod
    def _collection():
        return PatientQueueMongo.get_pymongo_collection()

    async def list_for_doctors(
        self, doctor_ids: Sequence[ObjectRef], queue_status: Optional[QueueStatus] = None
    ) -> List[PatientQueueEntry]:
        query: Dict[str, Any] = ObjectRef.filter("doctorId", doctor_ids)
        if queue_status is not None:
            query["queueStatus"] = queue_status.value
        async with self._gateway.operation("patient_queue.list_for_doctors"):
            raw_documents = await self._collection().find(query).to_list(length=None)

        entries: List[PatientQueueEntry] = []
        for raw in raw_documents:
            try:
                entries.append(queue_entry_to_domain(PatientQueueMongo.model_validate(raw)))
            except ValidationError as exc:
                logger.warning("Skipping unreadable queue entry %s: %s", raw.get("_id"), exc.errors()[:1])
        return entries

    async def find_by_key(self, appointment_key: str) -> Optional[PatientQueueEntry]:
        async with self._gateway.operation("patient_queue.find_by_key"):
            document = await PatientQueueMongo.find_one({"appointmentKey": appointment_key})
        return queue_entry_to_domain(document) if document else None

    async def create(self, entry: PatientQueueEntry) -> bool:
        document = PatientQueueMongo(
            appointment_key=entry.appointment_key,
            doctor_id=entry.doctor_id.object_id,
            doctor_name=entry.doctor_name,
            patient_id=entry.patient_id.object_id if entry.patient_id else None,
            patient_name=entry.patient_name,
            patient_phone=entry.patient_phone,
            appointment_date=entry.appointment_date,
            session_start_time=entry.session_start_time,
            status=entry.status,
            queue_status=entry.queue_status,
            created_at=entry.created_at,
            updated_at=entry.updated_at,
        )
        async with self._gateway.operation("patient_queue.create"):
            try:
                await document.insert()
            except DuplicateKeyError:
                logger.info("Queue entry for %s already exists", entry.appointment_key)
                return False
        return True

    async def save_changes(self, entry: PatientQueueEntry) -> Optional[PatientQueueEntry]:
        async with self._gateway.operation("patient_queue.save_changes"):
            raw = await self._collection().find_one_and_update(
                {"appointmentKey": entry.appointment_key},
                {
                    "$set": {
                        "queueStatus": entry.queue_status.value,
                        "status": entry.status.value,
                        "updatedAt": entry.updated_at,
                    }
                },
                return_document=ReturnDocument.AFTER,
            )
        return queue_entry_to_domain(PatientQueueMongo.model_validate(raw)) if raw else None
