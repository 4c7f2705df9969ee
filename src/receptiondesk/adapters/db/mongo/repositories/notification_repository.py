"""
MongoDB implementation of NotificationRepository.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from receptiondesk.application.ports.repositories.notification_repo import NotificationRepository
from receptiondesk.core.utils.datetime_utils import utcnow
from receptiondesk.domain.entities.notification import Notification
from receptiondesk.domain.enums import NotificationStatus, NotificationType
from receptiondesk.domain.value_objects import ObjectRef

from ..gateway import MongoGateway
from ..models.notification_m import NotificationMongo

logger = logging.getLogger(__name__)


def notification_to_domain(document: NotificationMongo) -> Notification:
    return Notification(
        doctor_id=ObjectRef.parse(document.doctor_id),
        type=NotificationType(document.type),
        message=document.message,
        id=ObjectRef.parse(document.id) if document.id else None,
        doctor_name=document.doctor_name,
        patient_id=ObjectRef.parse(document.patient_id) if document.patient_id else None,
        patient_name=document.patient_name,
        appointment_date=document.appointment_date,
        appointment_time=document.appointment_time,
        appointment_key=document.appointment_key,
        status=NotificationStatus(document.status),
        rejection_reason=document.rejection_reason,
        event_id=document.event_id,
        created_at=document.created_at,
        updated_at=document.updated_at,
    )


class MongoNotificationRepository(NotificationRepository):
    """MongoDB implementation of NotificationRepository."""

    def __init__(self, gateway: MongoGateway):
        self._gateway = gateway

    @staticmethod
    def _collection():
        return NotificationMongo.get_pymongo_collection()

    async def list_for_doctors(
        self,
        doctor_ids: Sequence[ObjectRef],
        status: Optional[NotificationStatus] = None,
        limit: int = 50,
    ) -> List[Notification]:
        query: Dict[str, Any] = ObjectRef.filter("doctorId", doctor_ids)
        if status is not None:
            query["status"] = status.value
        async with self._gateway.operation("notifications.list_for_doctors"):
            cursor = self._collection().find(query).sort("createdAt", -1).limit(limit)
            raw_documents = await cursor.to_list(length=limit)

        notifications: List[Notification] = []
        for raw in raw_documents:
            try:
                notifications.append(notification_to_domain(NotificationMongo.model_validate(raw)))
            except ValidationError as exc:
                logger.warning("Skipping unreadable notification %s: %s", raw.get("_id"), exc.errors()[:1])
        return notifications

    async def find_by_id(self, notification_id: ObjectRef) -> Optional[Notification]:
        async with self._gateway.operation("notifications.find_by_id"):
            document = await NotificationMongo.find_one({"_id": notification_id.object_id})
        return notification_to_domain(document) if document else None

    async def create_once(self, notification: Notification) -> bool:
        document = NotificationMongo(
            doctor_id=notification.doctor_id.object_id,
            doctor_name=notification.doctor_name,
            patient_id=notification.patient_id.object_id if notification.patient_id else None,
            patient_name=notification.patient_name,
            appointment_date=notification.appointment_date,
            appointment_time=notification.appointment_time,
            appointment_key=notification.appointment_key,
            message=notification.message,
            type=notification.type,
            status=notification.status,
            rejection_reason=notification.rejection_reason,
            event_id=notification.event_id,
            created_at=notification.created_at or utcnow(),
            updated_at=notification.updated_at or utcnow(),
        )
        async with self._gateway.operation("notifications.create_once"):
            try:
                await document.insert()
            except DuplicateKeyError:
                logger.info("Notification for event %s already exists", notification.event_id)
                return False
        return True

    async def set_status(
        self, notification_id: ObjectRef, status: NotificationStatus
    ) -> Optional[Notification]:
        async with self._gateway.operation("notifications.set_status"):
            raw = await self._collection().find_one_and_update(
                {"_id": notification_id.object_id},
                {"$set": {"status": status.value, "updatedAt": utcnow()}},
                return_document=ReturnDocument.AFTER,
            )
        return notification_to_domain(NotificationMongo.model_validate(raw)) if raw else None

    async def delete(self, notification_id: ObjectRef) -> bool:
        async with self._gateway.operation("notifications.delete"):
            result = await self._collection().delete_one({"_id": notification_id.object_id})
        return result.deleted_count > 0
