"""
Outbox event: side effects still owed for a committed state change.

The event is written together with the primary mutation and drained by the
outbox dispatcher. Each kind has an ordered list of idempotent steps; the
names of completed steps are recorded so a retry resumes where it stopped.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from ..enums import AppointmentStatus, OutboxEventKind, OutboxStatus
from ..value_objects import ObjectRef
from .appointment import Appointment
from .patient_queue_entry import PatientQueueEntry

STEP_QUEUE_ENTRY = "queue_entry"
STEP_RELEASE_SLOT = "release_slot"
STEP_RESTORE_SLOT = "restore_slot"
STEP_ARCHIVE = "archive"
STEP_NOTIFICATION = "notification"
# Each relay send is its own step so a retry never repeats one that went out
STEP_PUBLISH_APPOINTMENT = "publish_appointment"
STEP_PUBLISH_QUEUE = "publish_queue"

EVENT_STEPS: Dict[OutboxEventKind, Tuple[str, ...]] = {
    OutboxEventKind.APPOINTMENT_CONFIRMED: (
        STEP_QUEUE_ENTRY,
        STEP_RELEASE_SLOT,
        STEP_NOTIFICATION,
        STEP_PUBLISH_APPOINTMENT,
        STEP_PUBLISH_QUEUE,
    ),
    OutboxEventKind.APPOINTMENT_REJECTED: (
        STEP_RESTORE_SLOT,
        STEP_ARCHIVE,
        STEP_NOTIFICATION,
        STEP_PUBLISH_APPOINTMENT,
    ),
    OutboxEventKind.APPOINTMENT_STATUS_CHANGED: (STEP_PUBLISH_APPOINTMENT,),
    OutboxEventKind.QUEUE_UPDATED: (STEP_PUBLISH_QUEUE,),
}


@dataclass
class OutboxEvent:
    kind: OutboxEventKind
    doctor_id: ObjectRef
    payload: Dict[str, Any]
    event_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    status: OutboxStatus = OutboxStatus.PENDING
    attempts: int = 0
    completed_steps: List[str] = field(default_factory=list)
    last_error: Optional[str] = None
    available_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def steps(self) -> Tuple[str, ...]:
        return EVENT_STEPS[self.kind]

    @property
    def remaining_steps(self) -> List[str]:
        return [step for step in self.steps if step not in self.completed_steps]

    @property
    def appointment(self) -> Optional[Appointment]:
        data = self.payload.get("appointment")
        return Appointment.from_payload(data) if data else None

    @classmethod
    def for_appointment_change(
        cls, appointment: Appointment, previous: AppointmentStatus, at: datetime
    ) -> "OutboxEvent":
        """Event describing the side effects of moving appointment out of previous."""
        if appointment.status == AppointmentStatus.CONFIRMED:
            kind = OutboxEventKind.APPOINTMENT_CONFIRMED
        elif appointment.status == AppointmentStatus.REJECTED:
            kind = OutboxEventKind.APPOINTMENT_REJECTED
        else:
            kind = OutboxEventKind.APPOINTMENT_STATUS_CHANGED
        return cls(
            kind=kind,
            doctor_id=appointment.doctor_id,
            payload={"appointment": appointment.to_payload(), "previousStatus": previous.value},
            available_at=at,
            created_at=at,
            updated_at=at,
        )

    @classmethod
    def for_queue_change(cls, entry: PatientQueueEntry, at: datetime) -> "OutboxEvent":
        return cls(
            kind=OutboxEventKind.QUEUE_UPDATED,
            doctor_id=entry.doctor_id,
            payload={"queueEntry": entry.to_payload()},
            available_at=at,
            created_at=at,
            updated_at=at,
        )
