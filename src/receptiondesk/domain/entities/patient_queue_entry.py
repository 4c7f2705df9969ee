"""Patient queue entry derived from a confirmed appointment."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Dict, Optional

from ..enums import AppointmentStatus, QueueStatus
from ..errors import InvalidStatusTransitionError
from ..value_objects import ObjectRef
from .appointment import Appointment
from .serialization import iso


@dataclass
class PatientQueueEntry:
    """One waiting-room slot per appointment key.

    ``status`` mirrors the appointment's booking status; ``queue_status``
    tracks the in-clinic progress and moves independently of it.
    """

    appointment_key: str
    doctor_id: ObjectRef
    id: Optional[ObjectRef] = None
    doctor_name: Optional[str] = None
    patient_id: Optional[ObjectRef] = None
    patient_name: str = ""
    patient_phone: Optional[str] = None
    appointment_date: str = ""
    session_start_time: str = ""
    status: AppointmentStatus = AppointmentStatus.CONFIRMED
    queue_status: QueueStatus = QueueStatus.WAITING
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_appointment(cls, appointment: Appointment, at: datetime) -> "PatientQueueEntry":
        return cls(
            appointment_key=appointment.key,
            doctor_id=appointment.doctor_id,
            doctor_name=appointment.doctor_name,
            patient_id=appointment.patient_id,
            patient_name=appointment.patient_name,
            patient_phone=appointment.patient_phone,
            appointment_date=appointment.appointment_date,
            session_start_time=appointment.time_slot,
            status=appointment.status,
            queue_status=QueueStatus.WAITING,
            created_at=at,
            updated_at=at,
        )

    def with_changes(
        self,
        queue_status: Optional[QueueStatus],
        status: Optional[AppointmentStatus],
        at: datetime,
    ) -> "PatientQueueEntry":
        """Copy with a validated queue transition and/or mirrored booking status."""
        if queue_status is not None and queue_status != self.queue_status:
            if not self.queue_status.can_transition_to(queue_status):
                raise InvalidStatusTransitionError("queue", self.queue_status.value, queue_status.value)
        return replace(
            self,
            queue_status=queue_status or self.queue_status,
            status=status or self.status,
            updated_at=at,
        )

    def to_payload(self) -> Dict[str, Any]:
        return {
            "_id": self.id.value if self.id else None,
            "appointmentKey": self.appointment_key,
            "doctorId": self.doctor_id.value,
            "doctorName": self.doctor_name,
            "patientId": self.patient_id.value if self.patient_id else None,
            "patientName": self.patient_name,
            "patientPhone": self.patient_phone,
            "appointmentDate": self.appointment_date,
            "sessionStartTime": self.session_start_time,
            "status": self.status.value,
            "queueStatus": self.queue_status.value,
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
        }
