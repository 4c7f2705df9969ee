"""
Patient queue repository interface.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from ....domain.entities.patient_queue_entry import PatientQueueEntry
from ....domain.enums import QueueStatus
from ....domain.value_objects import ObjectRef


class PatientQueueRepository(ABC):
    """Abstract repository for patient queue entries."""

    @abstractmethod
    async def list_for_doctors(
        self, doctor_ids: Sequence[ObjectRef], queue_status: Optional[QueueStatus] = None
    ) -> List[PatientQueueEntry]:
        """Queue entries of any of the doctors (unsorted)."""
        pass

    @abstractmethod
    async def find_by_key(self, appointment_key: str) -> Optional[PatientQueueEntry]:
        pass

    @abstractmethod
    async def create(self, entry: PatientQueueEntry) -> bool:
        """Insert entry; False when one already exists for its appointment key."""
        pass

    @abstractmethod
    async def save_changes(self, entry: PatientQueueEntry) -> Optional[PatientQueueEntry]:
        """Persist queue_status/status/updated_at of an existing entry; None if it vanished."""
        pass
