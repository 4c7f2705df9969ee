"""Doctor schedule and cancelled-appointment archive entities."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..value_objects import ObjectRef
from .appointment import Appointment
from .serialization import iso


@dataclass
class DoctorSchedule:
    """Open time slots for one doctor on one calendar date (YYYY-MM-DD)."""

    doctor_id: ObjectRef
    date: str
    available_slots: List[str] = field(default_factory=list)
    id: Optional[ObjectRef] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_payload(self) -> Dict[str, Any]:
        return {
            "_id": self.id.value if self.id else None,
            "doctorId": self.doctor_id.value,
            "date": self.date,
            "availableSlots": list(self.available_slots),
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
        }


@dataclass
class CancelledAppointment:
    """Archive copy of a rejected appointment."""

    original_appointment_id: ObjectRef
    doctor_id: ObjectRef
    patient_name: str
    appointment_date: str
    time_slot: str
    rejected_at: datetime
    patient_email: Optional[str] = None
    rejection_reason: Optional[str] = None
    rejected_by: str = "receptionist"

    @classmethod
    def from_appointment(cls, appointment: Appointment, at: datetime) -> "CancelledAppointment":
        return cls(
            original_appointment_id=appointment.id,
            doctor_id=appointment.doctor_id,
            patient_name=appointment.patient_name,
            patient_email=appointment.patient_email,
            appointment_date=appointment.appointment_date,
            time_slot=appointment.time_slot,
            rejection_reason=appointment.rejection_reason,
            rejected_at=at,
        )
