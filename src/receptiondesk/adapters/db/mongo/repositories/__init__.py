"""MongoDB repository implementations."""

from .appointment_repository import MongoAppointmentRepository
from .notification_repository import MongoNotificationRepository
from .outbox_repository import MongoOutboxRepository
from .patient_queue_repository import MongoPatientQueueRepository
from .schedule_repository import MongoCancelledAppointmentRepository, MongoScheduleRepository
from .staff_repository import MongoDoctorRepository, MongoReceptionistRepository

__all__ = [
    "MongoAppointmentRepository",
    "MongoCancelledAppointmentRepository",
    "MongoDoctorRepository",
    "MongoNotificationRepository",
    "MongoOutboxRepository",
    "MongoPatientQueueRepository",
    "MongoReceptionistRepository",
    "MongoScheduleRepository",
]
