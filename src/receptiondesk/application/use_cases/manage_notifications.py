"""Notification inbox use cases."""

import logging
from typing import List, Optional, Sequence

from ...domain.entities.notification import Notification
from ...domain.enums import NotificationStatus, parse_enum
from ...domain.errors import InvalidFieldValueError, MissingFieldError, NotificationNotFoundError
from ...domain.value_objects import ObjectRef
from ..dto.reception_dto import SessionScope
from ..ports.repositories.notification_repo import NotificationRepository

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 50
MAX_LIMIT = 100


class ManageNotificationsUseCase:
    def __init__(self, notification_repository: NotificationRepository):
        self._notification_repository = notification_repository

    async def list(
        self,
        doctor_ids: Sequence[str],
        status: Optional[str] = None,
        limit: Optional[int] = None,
        scope: SessionScope = SessionScope.unrestricted(),
    ) -> List[Notification]:
        """Newest first; ``status`` of ``all`` or nothing lists both read states."""
        if not doctor_ids:
            raise MissingFieldError("doctorId")
        refs = ObjectRef.parse_many(doctor_ids, "doctorId")
        scope.check_all(refs)
        status_filter = (
            parse_enum(NotificationStatus, status, "status") if status and status != "all" else None
        )
        if limit is None:
            limit = DEFAULT_LIMIT
        if limit < 1:
            raise InvalidFieldValueError("limit", limit)
        return await self._notification_repository.list_for_doctors(
            refs, status_filter, min(limit, MAX_LIMIT)
        )

    async def set_status(
        self,
        notification_id: Optional[str],
        status: Optional[str],
        scope: SessionScope = SessionScope.unrestricted(),
    ) -> Notification:
        if not notification_id:
            raise MissingFieldError("notificationId")
        if not status:
            raise MissingFieldError("status")
        ref = ObjectRef.parse(notification_id, "notificationId")
        target = parse_enum(NotificationStatus, status, "status")

        await self._load_in_scope(ref, scope)
        updated = await self._notification_repository.set_status(ref, target)
        if updated is None:
            raise NotificationNotFoundError(ref.value)
        return updated

    async def delete(
        self, notification_id: Optional[str], scope: SessionScope = SessionScope.unrestricted()
    ) -> None:
        if not notification_id:
            raise MissingFieldError("notificationId")
        ref = ObjectRef.parse(notification_id, "notificationId")

        await self._load_in_scope(ref, scope)
        if not await self._notification_repository.delete(ref):
            raise NotificationNotFoundError(ref.value)
        logger.info("Deleted notification %s", ref)

    async def _load_in_scope(self, ref: ObjectRef, scope: SessionScope) -> Notification:
        notification = await self._notification_repository.find_by_id(ref)
        if notification is None:
            raise NotificationNotFoundError(ref.value)
        scope.check(notification.doctor_id)
        return notification
