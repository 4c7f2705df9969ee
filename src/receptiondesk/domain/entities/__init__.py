"""
Domain entities package.
"""

from .appointment import Appointment
from .doctor import Doctor
from .notification import Notification
from .outbox_event import EVENT_STEPS, OutboxEvent
from .patient_queue_entry import PatientQueueEntry
from .receptionist import Receptionist
from .schedule import CancelledAppointment, DoctorSchedule

__all__ = [
    "Appointment",
    "CancelledAppointment",
    "Doctor",
    "DoctorSchedule",
    "EVENT_STEPS",
    "Notification",
    "OutboxEvent",
    "PatientQueueEntry",
    "Receptionist",
]
