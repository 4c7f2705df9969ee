"""Notification domain entity: an inbox record of an appointment decision."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from ..enums import AppointmentStatus, NotificationStatus, NotificationType
from ..value_objects import ObjectRef
from .appointment import Appointment
from .serialization import iso


@dataclass
class Notification:
    doctor_id: ObjectRef
    type: NotificationType
    message: str
    id: Optional[ObjectRef] = None
    doctor_name: Optional[str] = None
    patient_id: Optional[ObjectRef] = None
    patient_name: str = ""
    appointment_date: str = ""
    appointment_time: str = ""
    appointment_key: Optional[str] = None
    status: NotificationStatus = NotificationStatus.UNREAD
    rejection_reason: Optional[str] = None
    event_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def for_decision(cls, appointment: Appointment, event_id: str, at: datetime) -> "Notification":
        """Notification for a confirmed or rejected appointment, keyed by the outbox event."""
        if appointment.status == AppointmentStatus.CONFIRMED:
            kind = NotificationType.APPOINTMENT_CONFIRMED
            message = (
                f"Appointment for {appointment.patient_name or 'patient'} on "
                f"{appointment.appointment_date} at {appointment.time_slot} has been confirmed"
            )
        elif appointment.status == AppointmentStatus.REJECTED:
            kind = NotificationType.APPOINTMENT_REJECTED
            message = (
                f"Appointment for {appointment.patient_name or 'patient'} on "
                f"{appointment.appointment_date} at {appointment.time_slot} has been rejected"
            )
            if appointment.rejection_reason:
                message += f": {appointment.rejection_reason}"
        else:
            raise ValueError(f"No notification is defined for status '{appointment.status.value}'")

        return cls(
            doctor_id=appointment.doctor_id,
            type=kind,
            message=message,
            doctor_name=appointment.doctor_name,
            patient_id=appointment.patient_id,
            patient_name=appointment.patient_name,
            appointment_date=appointment.appointment_date,
            appointment_time=appointment.time_slot,
            appointment_key=appointment.key,
            rejection_reason=appointment.rejection_reason if kind == NotificationType.APPOINTMENT_REJECTED else None,
            event_id=event_id,
            created_at=at,
            updated_at=at,
        )

    def to_payload(self) -> Dict[str, Any]:
        payload = {
            "_id": self.id.value if self.id else None,
            "doctorId": self.doctor_id.value,
            "doctorName": self.doctor_name,
            "patientId": self.patient_id.value if self.patient_id else None,
            "patientName": self.patient_name,
            "appointmentDate": self.appointment_date,
            "appointmentTime": self.appointment_time,
            "appointmentKey": self.appointment_key,
            "message": self.message,
            "type": self.type.value,
            "status": self.status.value,
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
        }
        if self.rejection_reason:
            payload["rejectionReason"] = self.rejection_reason
        return payload
