"""FastAPI dependency providers.

The gateway and the relay live on ``app.state`` (created in ``create_app``);
repositories and use cases are thin and built per request from them. Tests
swap the repository providers through ``app.dependency_overrides``.
"""

import logging
from typing import Annotated, Optional

from fastapi import Depends, Header, Request

from ..adapters.db.mongo.gateway import MongoGateway
from ..adapters.db.mongo.repositories import (
    MongoAppointmentRepository,
    MongoCancelledAppointmentRepository,
    MongoDoctorRepository,
    MongoNotificationRepository,
    MongoOutboxRepository,
    MongoPatientQueueRepository,
    MongoReceptionistRepository,
    MongoScheduleRepository,
)
from ..adapters.realtime.relay import Relay
from ..application.dto.reception_dto import SessionScope
from ..application.ports.repositories.appointment_repo import AppointmentRepository
from ..application.ports.repositories.notification_repo import NotificationRepository
from ..application.ports.repositories.outbox_repo import OutboxRepository
from ..application.ports.repositories.patient_queue_repo import PatientQueueRepository
from ..application.ports.repositories.schedule_repo import (
    CancelledAppointmentRepository,
    ScheduleRepository,
)
from ..application.ports.repositories.staff_repo import DoctorRepository, ReceptionistRepository
from ..application.ports.services.realtime_publisher import RealtimePublisher
from ..application.use_cases.authenticate_receptionist import LoginUseCase, ValidateSessionUseCase
from ..application.use_cases.manage_appointments import (
    ListAppointmentsUseCase,
    UpdateAppointmentStatusUseCase,
)
from ..application.use_cases.manage_notifications import ManageNotificationsUseCase
from ..application.use_cases.manage_patient_queue import ListPatientQueueUseCase, UpdateQueueEntryUseCase
from ..application.use_cases.manage_schedules import ManageSchedulesUseCase
from ..application.use_cases.manage_staff import (
    GetReceptionistProfileUseCase,
    LinkDoctorsUseCase,
    ListDoctorsUseCase,
    SeedDoctorsUseCase,
)
from ..core.auth import AuthService, get_auth_service
from ..core.config import get_settings
from ..domain.errors import InvalidSessionError
from ..domain.value_objects import ObjectRef
from ..workers.outbox_dispatcher import OutboxDispatcher

logger = logging.getLogger(__name__)


def get_gateway(request: Request) -> MongoGateway:
    return request.app.state.gateway


def get_relay(request: Request) -> Relay:
    return request.app.state.relay


GatewayDep = Annotated[MongoGateway, Depends(get_gateway)]


def get_appointment_repository(gateway: GatewayDep) -> AppointmentRepository:
    return MongoAppointmentRepository(gateway)


def get_patient_queue_repository(gateway: GatewayDep) -> PatientQueueRepository:
    return MongoPatientQueueRepository(gateway)


def get_schedule_repository(gateway: GatewayDep) -> ScheduleRepository:
    return MongoScheduleRepository(gateway)


def get_cancelled_appointment_repository(gateway: GatewayDep) -> CancelledAppointmentRepository:
    return MongoCancelledAppointmentRepository(gateway)


def get_notification_repository(gateway: GatewayDep) -> NotificationRepository:
    return MongoNotificationRepository(gateway)


def get_outbox_repository(gateway: GatewayDep) -> OutboxRepository:
    return MongoOutboxRepository(gateway)


def get_doctor_repository(gateway: GatewayDep) -> DoctorRepository:
    return MongoDoctorRepository(gateway)


def get_receptionist_repository(gateway: GatewayDep) -> ReceptionistRepository:
    return MongoReceptionistRepository(gateway)


def get_realtime_publisher(request: Request) -> RealtimePublisher:
    """Get the process-wide relay as the publisher used by the dispatcher."""
    return get_relay(request)


AppointmentRepositoryDep = Annotated[AppointmentRepository, Depends(get_appointment_repository)]
PatientQueueRepositoryDep = Annotated[PatientQueueRepository, Depends(get_patient_queue_repository)]
ScheduleRepositoryDep = Annotated[ScheduleRepository, Depends(get_schedule_repository)]
CancelledAppointmentRepositoryDep = Annotated[
    CancelledAppointmentRepository, Depends(get_cancelled_appointment_repository)
]
NotificationRepositoryDep = Annotated[NotificationRepository, Depends(get_notification_repository)]
OutboxRepositoryDep = Annotated[OutboxRepository, Depends(get_outbox_repository)]
DoctorRepositoryDep = Annotated[DoctorRepository, Depends(get_doctor_repository)]
ReceptionistRepositoryDep = Annotated[ReceptionistRepository, Depends(get_receptionist_repository)]
RealtimePublisherDep = Annotated[RealtimePublisher, Depends(get_realtime_publisher)]


def get_outbox_dispatcher(
    outbox: OutboxRepositoryDep,
    queue: PatientQueueRepositoryDep,
    schedules: ScheduleRepositoryDep,
    archive: CancelledAppointmentRepositoryDep,
    notifications: NotificationRepositoryDep,
    publisher: RealtimePublisherDep,
) -> OutboxDispatcher:
    return OutboxDispatcher(
        outbox=outbox,
        queue=queue,
        schedules=schedules,
        archive=archive,
        notifications=notifications,
        publisher=publisher,
        settings=get_settings().outbox,
    )


async def drain_outbox_in_background(dispatcher: OutboxDispatcher) -> None:
    """Background task run after a mutation response; leftovers go to the periodic loop."""
    try:
        await dispatcher.drain()
    except Exception as e:  # noqa: BLE001
        logger.error("[Outbox] Background drain failed: %s", e, exc_info=True)


async def get_session_scope(request: Request, receptionists: ReceptionistRepositoryDep) -> SessionScope:
    """
    Doctors the caller may act for.

    Requests without a session are unrestricted unless AUTH_REQUIRE_SESSION is
    set, in which case the session middleware has already rejected them.
    """
    receptionist_id: Optional[str] = getattr(request.state, "receptionist_id", None)
    if not receptionist_id or not ObjectRef.is_valid(receptionist_id):
        return SessionScope.unrestricted()

    receptionist = await receptionists.find_by_id(ObjectRef(receptionist_id))
    if receptionist is None:
        if get_settings().auth.require_session:
            raise InvalidSessionError("Session expired or invalid")
        return SessionScope.unrestricted()
    return SessionScope.for_receptionist(receptionist)


def require_admin(
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
    x_api_key: Annotated[Optional[str], Header(alias="X-API-Key")] = None,
) -> str:
    """Admin endpoints authenticate with an API key rather than a receptionist session."""
    return auth_service.validate_api_key(x_api_key)


SessionScopeDep = Annotated[SessionScope, Depends(get_session_scope)]
OutboxDispatcherDep = Annotated[OutboxDispatcher, Depends(get_outbox_dispatcher)]
AdminUserDep = Annotated[str, Depends(require_admin)]


def get_list_appointments_use_case(repository: AppointmentRepositoryDep) -> ListAppointmentsUseCase:
    return ListAppointmentsUseCase(repository)


def get_update_appointment_status_use_case(
    repository: AppointmentRepositoryDep, outbox: OutboxRepositoryDep
) -> UpdateAppointmentStatusUseCase:
    return UpdateAppointmentStatusUseCase(repository, outbox)


def get_list_patient_queue_use_case(repository: PatientQueueRepositoryDep) -> ListPatientQueueUseCase:
    return ListPatientQueueUseCase(repository)


def get_update_queue_entry_use_case(
    repository: PatientQueueRepositoryDep, outbox: OutboxRepositoryDep
) -> UpdateQueueEntryUseCase:
    return UpdateQueueEntryUseCase(repository, outbox)


def get_manage_schedules_use_case(repository: ScheduleRepositoryDep) -> ManageSchedulesUseCase:
    return ManageSchedulesUseCase(repository)


def get_manage_notifications_use_case(repository: NotificationRepositoryDep) -> ManageNotificationsUseCase:
    return ManageNotificationsUseCase(repository)


def get_login_use_case(
    receptionists: ReceptionistRepositoryDep, doctors: DoctorRepositoryDep
) -> LoginUseCase:
    return LoginUseCase(receptionists, doctors)


def get_validate_session_use_case(
    receptionists: ReceptionistRepositoryDep, doctors: DoctorRepositoryDep
) -> ValidateSessionUseCase:
    return ValidateSessionUseCase(receptionists, doctors)


def get_list_doctors_use_case(doctors: DoctorRepositoryDep) -> ListDoctorsUseCase:
    return ListDoctorsUseCase(doctors)


def get_seed_doctors_use_case(doctors: DoctorRepositoryDep) -> SeedDoctorsUseCase:
    return SeedDoctorsUseCase(doctors)


def get_profile_use_case(
    receptionists: ReceptionistRepositoryDep, doctors: DoctorRepositoryDep
) -> GetReceptionistProfileUseCase:
    return GetReceptionistProfileUseCase(receptionists, doctors)


def get_link_doctors_use_case(
    receptionists: ReceptionistRepositoryDep, doctors: DoctorRepositoryDep
) -> LinkDoctorsUseCase:
    return LinkDoctorsUseCase(receptionists, doctors)


# Dependency annotations for FastAPI
ListAppointmentsDep = Annotated[ListAppointmentsUseCase, Depends(get_list_appointments_use_case)]
UpdateAppointmentStatusDep = Annotated[
    UpdateAppointmentStatusUseCase, Depends(get_update_appointment_status_use_case)
]
ListPatientQueueDep = Annotated[ListPatientQueueUseCase, Depends(get_list_patient_queue_use_case)]
UpdateQueueEntryDep = Annotated[UpdateQueueEntryUseCase, Depends(get_update_queue_entry_use_case)]
ManageSchedulesDep = Annotated[ManageSchedulesUseCase, Depends(get_manage_schedules_use_case)]
ManageNotificationsDep = Annotated[ManageNotificationsUseCase, Depends(get_manage_notifications_use_case)]
LoginDep = Annotated[LoginUseCase, Depends(get_login_use_case)]
ValidateSessionDep = Annotated[ValidateSessionUseCase, Depends(get_validate_session_use_case)]
ListDoctorsDep = Annotated[ListDoctorsUseCase, Depends(get_list_doctors_use_case)]
SeedDoctorsDep = Annotated[SeedDoctorsUseCase, Depends(get_seed_doctors_use_case)]
ReceptionistProfileDep = Annotated[GetReceptionistProfileUseCase, Depends(get_profile_use_case)]
LinkDoctorsDep = Annotated[LinkDoctorsUseCase, Depends(get_link_doctors_use_case)]
