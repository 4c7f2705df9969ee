"""Beanie document models registered with init_beanie at startup."""

from .appointment_m import AppointmentMongo
from .notification_m import NotificationMongo
from .outbox_event_m import OutboxEventMongo
from .patient_queue_m import PatientQueueMongo
from .schedule_m import CancelledAppointmentMongo, DoctorScheduleMongo
from .staff_m import DoctorMongo, ReceptionistMongo

DOCUMENT_MODELS = [
    AppointmentMongo,
    CancelledAppointmentMongo,
    DoctorMongo,
    DoctorScheduleMongo,
    NotificationMongo,
    OutboxEventMongo,
    PatientQueueMongo,
    ReceptionistMongo,
]

__all__ = [
    "AppointmentMongo",
    "CancelledAppointmentMongo",
    "DOCUMENT_MODELS",
    "DoctorMongo",
    "DoctorScheduleMongo",
    "NotificationMongo",
    "OutboxEventMongo",
    "PatientQueueMongo",
    "ReceptionistMongo",
]
