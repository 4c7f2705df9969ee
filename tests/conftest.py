"""
Shared fixtures: in-memory repositories standing in for MongoDB, and an app
whose repository providers are overridden to use them.
"""

import copy
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pytest
from fastapi.testclient import TestClient

from receptiondesk.api import deps
from receptiondesk.application.ports.repositories.appointment_repo import AppointmentRepository
from receptiondesk.application.ports.repositories.notification_repo import NotificationRepository
from receptiondesk.application.ports.repositories.outbox_repo import OutboxRepository
from receptiondesk.application.ports.repositories.patient_queue_repo import PatientQueueRepository
from receptiondesk.application.ports.repositories.schedule_repo import (
    CancelledAppointmentRepository,
    ScheduleRepository,
)
from receptiondesk.application.ports.repositories.staff_repo import DoctorRepository, ReceptionistRepository
from receptiondesk.application.ports.services.realtime_publisher import RealtimePublisher
from receptiondesk.core.auth import AuthService, get_auth_service, reset_auth_service
from receptiondesk.core.config import reset_settings
from receptiondesk.core.exceptions import DatabaseError
from receptiondesk.core.utils.crypto import reset_fernet
from receptiondesk.core.utils.crypto_utils import hash_password
from receptiondesk.core.utils.datetime_utils import utcnow
from receptiondesk.domain.entities.appointment import Appointment
from receptiondesk.domain.entities.doctor import Doctor
from receptiondesk.domain.entities.notification import Notification
from receptiondesk.domain.entities.outbox_event import OutboxEvent
from receptiondesk.domain.entities.patient_queue_entry import PatientQueueEntry
from receptiondesk.domain.entities.receptionist import Receptionist
from receptiondesk.domain.entities.schedule import CancelledAppointment, DoctorSchedule
from receptiondesk.domain.enums import AppointmentStatus, NotificationStatus, OutboxStatus, QueueStatus
from receptiondesk.domain.value_objects import ObjectRef

DOCTOR_A = "68c15cac7a7bea4f6c332685"
DOCTOR_B = "68c195256b30441fa3cab701"
UNLINKED_DOCTOR = "650000000000000000000abc"
ADMIN_KEY = "test-key"


# ---------------------------------------------------------------------------
# In-memory repositories
# ---------------------------------------------------------------------------


class FakeOutboxRepository(OutboxRepository):
    def __init__(self):
        self.events: Dict[str, OutboxEvent] = {}

    async def add(self, events: Sequence[OutboxEvent]) -> None:
        for event in events:
            self.events[event.event_id] = copy.deepcopy(event)

    async def has_appointment_event(self, appointment_id: ObjectRef, status: AppointmentStatus) -> bool:
        return any(
            event.payload.get("appointment", {}).get("_id") == appointment_id.value
            and event.payload["appointment"].get("status") == status.value
            for event in self.events.values()
        )

    async def claim_next(self, now: datetime, stale_before: datetime) -> Optional[OutboxEvent]:
        for event in self.events.values():
            due = event.status == OutboxStatus.PENDING and (event.available_at is None or event.available_at <= now)
            stale = event.status == OutboxStatus.PROCESSING and (
                event.updated_at is None or event.updated_at < stale_before
            )
            if due or stale:
                event.status = OutboxStatus.PROCESSING
                event.updated_at = now
                return copy.deepcopy(event)
        return None

    async def mark_step_done(self, event_id: str, step: str, at: datetime) -> None:
        event = self.events[event_id]
        if step not in event.completed_steps:
            event.completed_steps.append(step)
        event.updated_at = at

    async def mark_done(self, event_id: str, at: datetime) -> None:
        self.events[event_id].status = OutboxStatus.DONE
        self.events[event_id].updated_at = at

    async def schedule_retry(self, event_id: str, error: str, retry_at: datetime, at: datetime) -> None:
        event = self.events[event_id]
        event.status = OutboxStatus.PENDING
        event.attempts += 1
        event.last_error = error
        event.available_at = retry_at
        event.updated_at = at

    async def mark_failed(self, event_id: str, error: str, at: datetime) -> None:
        event = self.events[event_id]
        event.status = OutboxStatus.FAILED
        event.attempts += 1
        event.last_error = error
        event.updated_at = at

    async def count_by_status(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for event in self.events.values():
            counts[event.status.value] = counts.get(event.status.value, 0) + 1
        return counts


class FakeAppointmentRepository(AppointmentRepository):
    def __init__(self, outbox: FakeOutboxRepository):
        self.items: Dict[str, Appointment] = {}
        self._outbox = outbox

    async def find_by_id(self, appointment_id: ObjectRef) -> Optional[Appointment]:
        stored = self.items.get(appointment_id.value)
        return replace(stored) if stored else None

    async def list_for_doctors(
        self,
        doctor_ids: Sequence[ObjectRef],
        status: Optional[AppointmentStatus] = None,
        date: Optional[str] = None,
    ) -> List[Appointment]:
        found = [
            replace(item)
            for item in self.items.values()
            if item.doctor_id in doctor_ids
            and (status is None or item.status == status)
            and (date is None or item.appointment_date == date)
        ]
        return sorted(found, key=lambda item: (item.appointment_date, item.time_slot))

    async def transition_status(
        self,
        appointment_id: ObjectRef,
        expected: AppointmentStatus,
        target: AppointmentStatus,
        rejection_reason: Optional[str],
        at: datetime,
        events: Sequence[OutboxEvent],
    ) -> Optional[Appointment]:
        stored = self.items.get(appointment_id.value)
        if stored is None or stored.status != expected:
            return None
        updated = replace(
            stored,
            status=target,
            rejection_reason=rejection_reason if target == AppointmentStatus.REJECTED else stored.rejection_reason,
            updated_at=at,
        )
        self.items[appointment_id.value] = updated
        try:
            await self._outbox.add(events)
        except DatabaseError:
            # Mirrors the store without transactions: the status stays committed
            pass
        return replace(updated)


class FakePatientQueueRepository(PatientQueueRepository):
    def __init__(self):
        self.entries: Dict[str, PatientQueueEntry] = {}

    async def list_for_doctors(
        self, doctor_ids: Sequence[ObjectRef], queue_status: Optional[QueueStatus] = None
    ) -> List[PatientQueueEntry]:
        return [
            replace(entry)
            for entry in self.entries.values()
            if entry.doctor_id in doctor_ids and (queue_status is None or entry.queue_status == queue_status)
        ]

    async def find_by_key(self, appointment_key: str) -> Optional[PatientQueueEntry]:
        entry = self.entries.get(appointment_key)
        return replace(entry) if entry else None

    async def create(self, entry: PatientQueueEntry) -> bool:
        if entry.appointment_key in self.entries:
            return False
        self.entries[entry.appointment_key] = replace(entry, id=entry.id or ObjectRef.generate())
        return True

    async def save_changes(self, entry: PatientQueueEntry) -> Optional[PatientQueueEntry]:
        if entry.appointment_key not in self.entries:
            return None
        self.entries[entry.appointment_key] = replace(entry)
        return replace(entry)


class FakeScheduleRepository(ScheduleRepository):
    def __init__(self):
        self.schedules: Dict[Tuple[str, str], DoctorSchedule] = {}

    async def list_for_doctors(
        self, doctor_ids: Sequence[ObjectRef], date: Optional[str] = None
    ) -> List[DoctorSchedule]:
        found = [
            copy.deepcopy(schedule)
            for schedule in self.schedules.values()
            if schedule.doctor_id in doctor_ids and (date is None or schedule.date == date)
        ]
        return sorted(found, key=lambda schedule: schedule.date)

    async def add_slot(self, doctor_id: ObjectRef, date: str, time_slot: str) -> DoctorSchedule:
        now = utcnow()
        schedule = self.schedules.setdefault(
            (doctor_id.value, date),
            DoctorSchedule(doctor_id=doctor_id, date=date, id=ObjectRef.generate(), created_at=now),
        )
        if time_slot not in schedule.available_slots:
            schedule.available_slots.append(time_slot)
        schedule.updated_at = now
        return copy.deepcopy(schedule)

    async def remove_slot(self, doctor_id: ObjectRef, date: str, time_slot: str) -> bool:
        schedule = self.schedules.get((doctor_id.value, date))
        if schedule is None:
            return False
        if time_slot in schedule.available_slots:
            schedule.available_slots.remove(time_slot)
        return True

    def slots(self, doctor_id: str, date: str) -> List[str]:
        schedule = self.schedules.get((doctor_id, date))
        return list(schedule.available_slots) if schedule else []


class FakeCancelledAppointmentRepository(CancelledAppointmentRepository):
    def __init__(self):
        self.records: Dict[str, CancelledAppointment] = {}

    async def archive(self, record: CancelledAppointment) -> bool:
        if record.original_appointment_id.value in self.records:
            return False
        self.records[record.original_appointment_id.value] = record
        return True


class FakeNotificationRepository(NotificationRepository):
    def __init__(self):
        self.items: Dict[str, Notification] = {}

    async def list_for_doctors(
        self,
        doctor_ids: Sequence[ObjectRef],
        status: Optional[NotificationStatus] = None,
        limit: int = 50,
    ) -> List[Notification]:
        found = [
            replace(item)
            for item in self.items.values()
            if item.doctor_id in doctor_ids and (status is None or item.status == status)
        ]
        found.sort(key=lambda item: item.created_at or datetime.min, reverse=True)
        return found[:limit]

    async def find_by_id(self, notification_id: ObjectRef) -> Optional[Notification]:
        item = self.items.get(notification_id.value)
        return replace(item) if item else None

    async def create_once(self, notification: Notification) -> bool:
        if notification.event_id and any(item.event_id == notification.event_id for item in self.items.values()):
            return False
        stored = replace(notification, id=notification.id or ObjectRef.generate())
        self.items[stored.id.value] = stored
        return True

    async def set_status(
        self, notification_id: ObjectRef, status: NotificationStatus
    ) -> Optional[Notification]:
        item = self.items.get(notification_id.value)
        if item is None:
            return None
        item.status = status
        item.updated_at = utcnow()
        return replace(item)

    async def delete(self, notification_id: ObjectRef) -> bool:
        return self.items.pop(notification_id.value, None) is not None


class FakeDoctorRepository(DoctorRepository):
    def __init__(self):
        self.doctors: Dict[str, Doctor] = {}

    async def list_all(self) -> List[Doctor]:
        return sorted(self.doctors.values(), key=lambda doctor: doctor.name)

    async def find_many(self, doctor_ids: Sequence[ObjectRef]) -> List[Doctor]:
        return [self.doctors[ref.value] for ref in doctor_ids if ref.value in self.doctors]

    async def upsert(self, doctor: Doctor) -> bool:
        inserted = doctor.id.value not in self.doctors
        self.doctors[doctor.id.value] = doctor
        return inserted


class FakeReceptionistRepository(ReceptionistRepository):
    def __init__(self):
        self.items: Dict[str, Receptionist] = {}

    async def find_by_email(self, email: str) -> Optional[Receptionist]:
        for item in self.items.values():
            if item.email == email:
                return replace(item)
        return None

    async def find_by_id(self, receptionist_id: ObjectRef) -> Optional[Receptionist]:
        item = self.items.get(receptionist_id.value)
        return replace(item) if item else None

    async def record_login(
        self, receptionist_id: ObjectRef, at: datetime, password_hash: Optional[str] = None
    ) -> None:
        item = self.items[receptionist_id.value]
        item.last_login = at
        if password_hash:
            item.password_hash = password_hash

    async def set_linked_doctors(
        self, email: str, doctor_ids: Sequence[ObjectRef], at: datetime
    ) -> Optional[Receptionist]:
        for item in self.items.values():
            if item.email == email:
                item.linked_doctor_ids = list(doctor_ids)
                item.updated_at = at
                return replace(item)
        return None


class FakePublisher(RealtimePublisher):
    """Records every publish; optionally fails the first ``failures`` calls."""

    def __init__(self, failures: int = 0):
        self.published: List[Tuple[str, str, Dict[str, Any]]] = []
        self.failures = failures

    async def publish(self, doctor_id: str, event: str, data: Dict[str, Any]) -> int:
        if self.failures > 0:
            self.failures -= 1
            raise ConnectionError("relay unavailable")
        self.published.append((doctor_id, event, data))
        return 1

    def events(self) -> List[str]:
        return [event for _, event, _ in self.published]


class FakeGateway:
    def __init__(self, healthy: bool = True, counts: Optional[Dict[str, int]] = None):
        self.healthy = healthy
        self.counts = counts or {}
        self.opened = False

    async def open(self) -> None:
        self.opened = True

    async def close(self) -> None:
        self.opened = False

    async def ping(self) -> bool:
        return self.healthy

    async def collection_counts(self, names: List[str]) -> Dict[str, int]:
        return {name: self.counts.get(name, 0) for name in names}


@dataclass
class FakeStore:
    outbox: FakeOutboxRepository = field(default_factory=FakeOutboxRepository)
    queue: FakePatientQueueRepository = field(default_factory=FakePatientQueueRepository)
    schedules: FakeScheduleRepository = field(default_factory=FakeScheduleRepository)
    archive: FakeCancelledAppointmentRepository = field(default_factory=FakeCancelledAppointmentRepository)
    notifications: FakeNotificationRepository = field(default_factory=FakeNotificationRepository)
    doctors: FakeDoctorRepository = field(default_factory=FakeDoctorRepository)
    receptionists: FakeReceptionistRepository = field(default_factory=FakeReceptionistRepository)
    publisher: FakePublisher = field(default_factory=FakePublisher)
    gateway: FakeGateway = field(default_factory=FakeGateway)
    appointments: FakeAppointmentRepository = None

    def __post_init__(self):
        if self.appointments is None:
            self.appointments = FakeAppointmentRepository(self.outbox)

    def add_appointment(
        self,
        doctor_id: str = DOCTOR_A,
        appointment_date: str = "2025-03-10",
        time_slot: str = "10:00 AM",
        status: AppointmentStatus = AppointmentStatus.PENDING,
        patient_name: str = "Ali Raza",
    ) -> Appointment:
        appointment = Appointment(
            id=ObjectRef.generate(),
            doctor_id=ObjectRef(doctor_id),
            appointment_date=appointment_date,
            time_slot=time_slot,
            status=status,
            doctor_name="Dr. Ahmed Khan",
            patient_id=ObjectRef.generate(),
            patient_name=patient_name,
            patient_email="ali@example.com",
            patient_phone="+923001112233",
            reason="Chest pain",
            created_at=utcnow(),
            updated_at=utcnow(),
        )
        self.appointments.items[appointment.id.value] = appointment
        return appointment

    def add_queue_entry(
        self,
        session_start_time: str,
        doctor_id: str = DOCTOR_A,
        queue_status: QueueStatus = QueueStatus.WAITING,
        patient_name: str = "Patient",
    ) -> PatientQueueEntry:
        key = ObjectRef.generate().value
        entry = PatientQueueEntry(
            appointment_key=key,
            doctor_id=ObjectRef(doctor_id),
            id=ObjectRef.generate(),
            patient_name=patient_name,
            appointment_date="2025-03-10",
            session_start_time=session_start_time,
            queue_status=queue_status,
            created_at=utcnow(),
            updated_at=utcnow(),
        )
        self.queue.entries[key] = entry
        return entry

    def add_doctor(self, doctor_id: str, name: str, specialization: str = "General") -> Doctor:
        doctor = Doctor(id=ObjectRef(doctor_id), name=name, specialization=specialization)
        self.doctors.doctors[doctor_id] = doctor
        return doctor

    def add_receptionist(
        self,
        email: str = "desk@clinic.com",
        password: str = "s3cret-pass",
        linked: Sequence[str] = (DOCTOR_A,),
        legacy_plaintext: bool = False,
    ) -> Receptionist:
        receptionist = Receptionist(
            id=ObjectRef.generate(),
            email=email,
            name="Front Desk",
            password_hash=password if legacy_plaintext else hash_password(password, iterations=1000),
            linked_doctor_ids=[ObjectRef(doctor_id) for doctor_id in linked],
        )
        self.receptionists.items[receptionist.id.value] = receptionist
        return receptionist


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch):
    """Every test reads settings, the session key and API keys from a clean slate."""
    monkeypatch.setenv("APP_ENV", "testing")
    monkeypatch.setenv("OUTBOX_ENABLED", "false")
    reset_settings()
    reset_fernet()
    reset_auth_service()
    yield
    reset_settings()
    reset_fernet()
    reset_auth_service()


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def app(store):
    from receptiondesk.app import create_app

    application = create_app()
    overrides = {
        deps.get_gateway: lambda: store.gateway,
        deps.get_appointment_repository: lambda: store.appointments,
        deps.get_patient_queue_repository: lambda: store.queue,
        deps.get_schedule_repository: lambda: store.schedules,
        deps.get_cancelled_appointment_repository: lambda: store.archive,
        deps.get_notification_repository: lambda: store.notifications,
        deps.get_outbox_repository: lambda: store.outbox,
        deps.get_doctor_repository: lambda: store.doctors,
        deps.get_receptionist_repository: lambda: store.receptionists,
        deps.get_realtime_publisher: lambda: store.publisher,
        get_auth_service: lambda: AuthService(f"{ADMIN_KEY}:admin"),
    }
    application.dependency_overrides.update(overrides)
    return application


@pytest.fixture
def client(app) -> TestClient:
    """Test client without lifespan: no database connection, no periodic dispatcher."""
    return TestClient(app)
