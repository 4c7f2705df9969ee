"""Request/response DTOs passed between the API layer and the use cases."""

from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, List, Optional

from ...domain.entities.appointment import Appointment
from ...domain.entities.doctor import Doctor
from ...domain.entities.patient_queue_entry import PatientQueueEntry
from ...domain.entities.receptionist import Receptionist
from ...domain.errors import DoctorAccessDeniedError
from ...domain.value_objects import ObjectRef


@dataclass(frozen=True)
class SessionScope:
    """Doctors the calling session may act for; ``doctor_ids=None`` means unrestricted."""

    receptionist_id: Optional[str] = None
    doctor_ids: Optional[FrozenSet[ObjectRef]] = None

    @classmethod
    def unrestricted(cls) -> "SessionScope":
        return cls()

    @classmethod
    def for_receptionist(cls, receptionist: Receptionist) -> "SessionScope":
        return cls(receptionist.id.value, frozenset(receptionist.linked_doctor_ids))

    def check(self, doctor_id: ObjectRef) -> None:
        if self.doctor_ids is not None and doctor_id not in self.doctor_ids:
            raise DoctorAccessDeniedError(doctor_id.value)

    def check_all(self, doctor_ids: Iterable[ObjectRef]) -> None:
        for doctor_id in doctor_ids:
            self.check(doctor_id)


@dataclass
class UpdateAppointmentStatusRequest:
    appointment_id: Optional[str]
    status: Optional[str]
    rejection_reason: Optional[str] = None
    doctor_id: Optional[str] = None


@dataclass
class UpdateAppointmentStatusResponse:
    appointment: Appointment
    changed: bool
    event_ids: List[str] = field(default_factory=list)


@dataclass
class UpdateQueueEntryRequest:
    appointment_key: Optional[str]
    queue_status: Optional[str] = None
    status: Optional[str] = None


@dataclass
class UpdateQueueEntryResponse:
    queue_entry: PatientQueueEntry
    changed: bool
    event_ids: List[str] = field(default_factory=list)


@dataclass
class SessionResult:
    """Outcome of a login or session validation."""

    receptionist: Receptionist
    doctors: List[Doctor]
    session_token: Optional[str] = None
