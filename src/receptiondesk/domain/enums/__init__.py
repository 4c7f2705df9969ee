from .statuses import (
    APPOINTMENT_TRANSITIONS,
    QUEUE_TRANSITIONS,
    AppointmentStatus,
    NotificationStatus,
    NotificationType,
    OutboxEventKind,
    OutboxStatus,
    QueueStatus,
    parse_enum,
)

__all__ = [
    "APPOINTMENT_TRANSITIONS",
    "QUEUE_TRANSITIONS",
    "AppointmentStatus",
    "NotificationStatus",
    "NotificationType",
    "OutboxEventKind",
    "OutboxStatus",
    "QueueStatus",
    "parse_enum",
]
