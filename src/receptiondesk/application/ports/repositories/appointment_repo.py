"""
Appointment repository interface for data access abstraction.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Sequence

from ....domain.entities.appointment import Appointment
from ....domain.entities.outbox_event import OutboxEvent
from ....domain.enums import AppointmentStatus
from ....domain.value_objects import ObjectRef


class AppointmentRepository(ABC):
    """Abstract repository for appointment data access."""

    @abstractmethod
    async def find_by_id(self, appointment_id: ObjectRef) -> Optional[Appointment]:
        """Find an appointment by ID."""
        pass

    @abstractmethod
    async def list_for_doctors(
        self,
        doctor_ids: Sequence[ObjectRef],
        status: Optional[AppointmentStatus] = None,
        date: Optional[str] = None,
    ) -> List[Appointment]:
        """Appointments of any of the doctors, sorted by date then time slot."""
        pass

    @abstractmethod
    async def transition_status(
        self,
        appointment_id: ObjectRef,
        expected: AppointmentStatus,
        target: AppointmentStatus,
        rejection_reason: Optional[str],
        at: datetime,
        events: Sequence[OutboxEvent],
    ) -> Optional[Appointment]:
        """Compare-and-set the status and record the outbox events in the same write unit.

        Returns the updated appointment, or None when the stored status was no
        longer ``expected`` (a concurrent update won). No events are written
        in that case.

        Without a transaction the status is committed first; an event write
        that fails afterwards is logged and the updated appointment is still
        returned.
        """
        pass
