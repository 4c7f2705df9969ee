"""
Lifecycle enums for appointments, queue entries, notifications and outbox events.
"""

from enum import Enum
from typing import Any, Dict, FrozenSet, Type, TypeVar

from ..errors import InvalidFieldValueError

E = TypeVar("E", bound=Enum)


class AppointmentStatus(str, Enum):
    """Booking decision for an appointment."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return not APPOINTMENT_TRANSITIONS[self]

    def can_transition_to(self, target: "AppointmentStatus") -> bool:
        return target in APPOINTMENT_TRANSITIONS[self]


class QueueStatus(str, Enum):
    """In-clinic progress of a confirmed appointment."""

    WAITING = "waiting"
    IN_SESSION = "in-session"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return not QUEUE_TRANSITIONS[self]

    def can_transition_to(self, target: "QueueStatus") -> bool:
        return target in QUEUE_TRANSITIONS[self]


class NotificationStatus(str, Enum):
    """Read state of a notification."""

    READ = "read"
    UNREAD = "unread"


class NotificationType(str, Enum):
    APPOINTMENT_CONFIRMED = "appointment_confirmed"
    APPOINTMENT_REJECTED = "appointment_rejected"


class OutboxStatus(str, Enum):
    """Delivery state of an outbox event."""

    PENDING = "pending"
    PROCESSING = "processing"
    DONE = "done"
    FAILED = "failed"


class OutboxEventKind(str, Enum):
    APPOINTMENT_CONFIRMED = "appointment.confirmed"
    APPOINTMENT_REJECTED = "appointment.rejected"
    APPOINTMENT_STATUS_CHANGED = "appointment.status_changed"
    QUEUE_UPDATED = "queue.updated"


APPOINTMENT_TRANSITIONS: Dict[AppointmentStatus, FrozenSet[AppointmentStatus]] = {
    AppointmentStatus.PENDING: frozenset(
        {AppointmentStatus.CONFIRMED, AppointmentStatus.REJECTED, AppointmentStatus.CANCELLED}
    ),
    AppointmentStatus.CONFIRMED: frozenset(
        {AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED, AppointmentStatus.REJECTED}
    ),
    AppointmentStatus.REJECTED: frozenset(),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
}

QUEUE_TRANSITIONS: Dict[QueueStatus, FrozenSet[QueueStatus]] = {
    QueueStatus.WAITING: frozenset({QueueStatus.IN_SESSION, QueueStatus.COMPLETED, QueueStatus.CANCELLED}),
    # A patient can be sent back to the waiting room from a session
    QueueStatus.IN_SESSION: frozenset({QueueStatus.WAITING, QueueStatus.COMPLETED, QueueStatus.CANCELLED}),
    QueueStatus.COMPLETED: frozenset(),
    QueueStatus.CANCELLED: frozenset(),
}


def parse_enum(enum_cls: Type[E], raw: Any, field: str) -> E:
    """Coerce a raw client value into enum_cls, raising InvalidFieldValueError."""
    if isinstance(raw, enum_cls):
        return raw
    try:
        return enum_cls(str(raw).strip().lower())
    except ValueError:
        raise InvalidFieldValueError(field, raw, [member.value for member in enum_cls]) from None
