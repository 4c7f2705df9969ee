"""
MongoDB implementation of AppointmentRepository.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence

from beanie import UpdateResponse  # type: ignore
from pydantic import ValidationError
from pymongo.errors import PyMongoError

from receptiondesk.application.ports.repositories.appointment_repo import AppointmentRepository
from receptiondesk.core.utils.datetime_utils import convert_to_24_hour
from receptiondesk.domain.entities.appointment import Appointment
from receptiondesk.domain.entities.outbox_event import OutboxEvent
from receptiondesk.domain.enums import AppointmentStatus
from receptiondesk.domain.value_objects import ObjectRef

from ..gateway import MongoGateway
from ..models.appointment_m import AppointmentMongo
from ..models.outbox_event_m import OutboxEventMongo
from .outbox_repository import outbox_event_to_document

logger = logging.getLogger(__name__)


def appointment_to_domain(document: AppointmentMongo) -> Appointment:
    return Appointment(
        id=ObjectRef.parse(document.id),
        doctor_id=ObjectRef.parse(document.doctor_id),
        appointment_date=document.appointment_date,
        time_slot=document.time_slot,
        status=AppointmentStatus(document.status),
        appointment_key=document.appointment_key,
        doctor_name=document.doctor_name,
        patient_id=ObjectRef.parse(document.patient_id) if document.patient_id else None,
        patient_name=document.patient_name,
        patient_email=document.patient_email,
        patient_phone=document.patient_phone,
        reason=document.reason,
        rejection_reason=document.rejection_reason,
        created_at=document.created_at,
        updated_at=document.updated_at,
    )


class MongoAppointmentRepository(AppointmentRepository):
    """MongoDB implementation of AppointmentRepository."""

    def __init__(self, gateway: MongoGateway):
        self._gateway = gateway

    async def find_by_id(self, appointment_id: ObjectRef) -> Optional[Appointment]:
        """Find an appointment by ID."""
        async with self._gateway.operation("appointments.find_by_id"):
            document = await AppointmentMongo.find_one({"_id": appointment_id.object_id})
        return appointment_to_domain(document) if document else None

    async def list_for_doctors(
        self,
        doctor_ids: Sequence[ObjectRef],
        status: Optional[AppointmentStatus] = None,
        date: Optional[str] = None,
    ) -> List[Appointment]:
        query: Dict[str, Any] = ObjectRef.filter("doctorId", doctor_ids)
        if status is not None:
            query["status"] = status.value
        if date:
            day = datetime.strptime(date, "%Y-%m-%d")
            # Older documents store the date as a datetime
            query["$or"] = [
                {"appointmentDate": date},
                {"appointmentDate": {"$gte": day, "$lt": day + timedelta(days=1)}},
            ]

        async with self._gateway.operation("appointments.list_for_doctors"):
            raw_documents = await AppointmentMongo.get_pymongo_collection().find(query).to_list(length=None)

        appointments: List[Appointment] = []
        for raw in raw_documents:
            try:
                appointments.append(appointment_to_domain(AppointmentMongo.model_validate(raw)))
            except ValidationError as exc:
                logger.warning("Skipping unreadable appointment %s: %s", raw.get("_id"), exc.errors()[:1])
        appointments.sort(key=lambda a: (a.appointment_date, convert_to_24_hour(a.time_slot)))
        return appointments

    async def transition_status(
        self,
        appointment_id: ObjectRef,
        expected: AppointmentStatus,
        target: AppointmentStatus,
        rejection_reason: Optional[str],
        at: datetime,
        events: Sequence[OutboxEvent],
    ) -> Optional[Appointment]:
        changes: Dict[str, Any] = {"status": target.value, "updatedAt": at}
        if target == AppointmentStatus.REJECTED and rejection_reason:
            changes["rejectionReason"] = rejection_reason

        async with self._gateway.write_unit() as session:
            async with self._gateway.operation("appointments.transition_status"):
                document = await AppointmentMongo.find_one(
                    {"_id": appointment_id.object_id, "status": expected.value}, session=session
                ).update({"$set": changes}, session=session, response_type=UpdateResponse.NEW_DOCUMENT)
                if document is None:
                    return None
                if events:
                    await self._record_events(events, session)
        return appointment_to_domain(document)

    async def _record_events(self, events: Sequence[OutboxEvent], session: Any) -> None:
        documents = [outbox_event_to_document(event) for event in events]
        if session is not None:
            await OutboxEventMongo.get_pymongo_collection().insert_many(documents, session=session)
            return
        try:
            await OutboxEventMongo.get_pymongo_collection().insert_many(documents)
        except PyMongoError:
            # Status already committed without a transaction; re-sending the same
            # status records the events again once the outbox has none for it
            logger.error(
                "❌ Outbox events %s not recorded after status change", [e.event_id for e in events], exc_info=True
            )
