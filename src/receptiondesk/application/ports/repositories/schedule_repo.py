"""
Doctor schedule and cancellation archive repository interfaces.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from ....domain.entities.schedule import CancelledAppointment, DoctorSchedule
from ....domain.value_objects import ObjectRef


class ScheduleRepository(ABC):
    """Abstract repository for per-doctor, per-date available slots."""

    @abstractmethod
    async def list_for_doctors(
        self, doctor_ids: Sequence[ObjectRef], date: Optional[str] = None
    ) -> List[DoctorSchedule]:
        """Schedules sorted by date."""
        pass

    @abstractmethod
    async def add_slot(self, doctor_id: ObjectRef, date: str, time_slot: str) -> DoctorSchedule:
        """Add time_slot to the doctor's date, creating the schedule when missing."""
        pass

    @abstractmethod
    async def remove_slot(self, doctor_id: ObjectRef, date: str, time_slot: str) -> bool:
        """Remove time_slot; False when no schedule exists for that doctor/date."""
        pass


class CancelledAppointmentRepository(ABC):
    """Abstract repository for the rejected-appointment archive."""

    @abstractmethod
    async def archive(self, record: CancelledAppointment) -> bool:
        """Archive record once per original appointment; False if already archived."""
        pass
