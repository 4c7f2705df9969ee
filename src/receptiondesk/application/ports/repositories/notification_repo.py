"""
Notification repository interface.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from ....domain.entities.notification import Notification
from ....domain.enums import NotificationStatus
from ....domain.value_objects import ObjectRef


class NotificationRepository(ABC):
    """Abstract repository for notifications."""

    @abstractmethod
    async def list_for_doctors(
        self,
        doctor_ids: Sequence[ObjectRef],
        status: Optional[NotificationStatus] = None,
        limit: int = 50,
    ) -> List[Notification]:
        """Newest first, at most limit."""
        pass

    @abstractmethod
    async def find_by_id(self, notification_id: ObjectRef) -> Optional[Notification]:
        pass

    @abstractmethod
    async def create_once(self, notification: Notification) -> bool:
        """Insert unless a notification for the same event_id exists; True when inserted."""
        pass

    @abstractmethod
    async def set_status(
        self, notification_id: ObjectRef, status: NotificationStatus
    ) -> Optional[Notification]:
        pass

    @abstractmethod
    async def delete(self, notification_id: ObjectRef) -> bool:
        pass
