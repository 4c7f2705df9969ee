"""
Doctor and receptionist repository interfaces.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Sequence

from ....domain.entities.doctor import Doctor
from ....domain.entities.receptionist import Receptionist
from ....domain.value_objects import ObjectRef


class DoctorRepository(ABC):
    """Abstract repository for doctors."""

    @abstractmethod
    async def list_all(self) -> List[Doctor]:
        pass

    @abstractmethod
    async def find_many(self, doctor_ids: Sequence[ObjectRef]) -> List[Doctor]:
        """Doctors among doctor_ids that exist, in the order of doctor_ids."""
        pass

    @abstractmethod
    async def upsert(self, doctor: Doctor) -> bool:
        """Replace or insert doctor by id; True when it was newly inserted."""
        pass


class ReceptionistRepository(ABC):
    """Abstract repository for receptionists."""

    @abstractmethod
    async def find_by_email(self, email: str) -> Optional[Receptionist]:
        pass

    @abstractmethod
    async def find_by_id(self, receptionist_id: ObjectRef) -> Optional[Receptionist]:
        pass

    @abstractmethod
    async def record_login(
        self, receptionist_id: ObjectRef, at: datetime, password_hash: Optional[str] = None
    ) -> None:
        """Stamp last login; also replaces the stored credential when password_hash is given."""
        pass

    @abstractmethod
    async def set_linked_doctors(
        self, email: str, doctor_ids: Sequence[ObjectRef], at: datetime
    ) -> Optional[Receptionist]:
        pass
