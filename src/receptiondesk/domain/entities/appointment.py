"""Appointment domain entity."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Dict, Optional

from ..enums import AppointmentStatus
from ..errors import InvalidStatusTransitionError
from ..value_objects import ObjectRef
from .serialization import from_iso, iso


@dataclass
class Appointment:
    """A patient's request for a doctor's time slot and the receptionist's decision on it."""

    id: ObjectRef
    doctor_id: ObjectRef
    appointment_date: str = ""
    time_slot: str = ""
    status: AppointmentStatus = AppointmentStatus.PENDING
    appointment_key: Optional[str] = None
    doctor_name: Optional[str] = None
    patient_id: Optional[ObjectRef] = None
    patient_name: str = ""
    patient_email: Optional[str] = None
    patient_phone: Optional[str] = None
    reason: Optional[str] = None
    rejection_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def key(self) -> str:
        """Appointment key correlating this appointment with its queue entry."""
        return self.appointment_key or self.id.value

    def ensure_can_transition(self, target: AppointmentStatus) -> None:
        if not self.status.can_transition_to(target):
            raise InvalidStatusTransitionError("appointment", self.status.value, target.value)

    def with_status(
        self, target: AppointmentStatus, rejection_reason: Optional[str], at: datetime
    ) -> "Appointment":
        """Copy of this appointment after a validated transition to target."""
        self.ensure_can_transition(target)
        return replace(
            self,
            status=target,
            rejection_reason=rejection_reason if target == AppointmentStatus.REJECTED else self.rejection_reason,
            updated_at=at,
        )

    def to_payload(self) -> Dict[str, Any]:
        """JSON-safe camelCase representation used for API responses, events and relay messages."""
        payload: Dict[str, Any] = {
            "_id": self.id.value,
            "appointmentKey": self.key,
            "doctorId": self.doctor_id.value,
            "doctorName": self.doctor_name,
            "patientId": self.patient_id.value if self.patient_id else None,
            "patientName": self.patient_name,
            "patientEmail": self.patient_email,
            "patientPhone": self.patient_phone,
            "appointmentDate": self.appointment_date,
            "timeSlot": self.time_slot,
            "reason": self.reason,
            "status": self.status.value,
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
        }
        if self.rejection_reason:
            payload["rejectionReason"] = self.rejection_reason
        return payload

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "Appointment":
        return cls(
            id=ObjectRef.parse(data["_id"], "appointmentId"),
            doctor_id=ObjectRef.parse(data["doctorId"], "doctorId"),
            appointment_date=data.get("appointmentDate") or "",
            time_slot=data.get("timeSlot") or "",
            status=AppointmentStatus(data.get("status", AppointmentStatus.PENDING.value)),
            appointment_key=data.get("appointmentKey"),
            doctor_name=data.get("doctorName"),
            patient_id=ObjectRef.parse(data["patientId"], "patientId") if data.get("patientId") else None,
            patient_name=data.get("patientName") or "",
            patient_email=data.get("patientEmail"),
            patient_phone=data.get("patientPhone"),
            reason=data.get("reason"),
            rejection_reason=data.get("rejectionReason"),
            created_at=from_iso(data.get("createdAt")),
            updated_at=from_iso(data.get("updatedAt")),
        )
