"""Receptionist login and session validation use cases."""

import logging
from typing import Optional

from ...core.utils.crypto import issue_session_token, read_session_token
from ...core.utils.crypto_utils import hash_password, is_legacy_password, verify_password
from ...core.utils.datetime_utils import utcnow
from ...domain.errors import (
    InvalidCredentialsError,
    InvalidSessionError,
    MissingFieldError,
    NoLinkedDoctorsError,
)
from ...domain.value_objects import ObjectRef
from ..dto.reception_dto import SessionResult
from ..ports.repositories.staff_repo import DoctorRepository, ReceptionistRepository

logger = logging.getLogger(__name__)


class LoginUseCase:
    """Verify a receptionist's credentials and open a session."""

    def __init__(self, receptionist_repository: ReceptionistRepository, doctor_repository: DoctorRepository):
        self._receptionist_repository = receptionist_repository
        self._doctor_repository = doctor_repository

    async def execute(self, email: Optional[str], password: Optional[str]) -> SessionResult:
        if not email or not password:
            raise MissingFieldError("email" if not email else "password")
        normalized = email.strip().lower()

        receptionist = await self._receptionist_repository.find_by_email(normalized)
        if receptionist is None or not verify_password(password, receptionist.password_hash):
            logger.info("Failed login for %s", normalized)
            raise InvalidCredentialsError()

        if not receptionist.linked_doctor_ids:
            raise NoLinkedDoctorsError(receptionist.id.value)

        upgraded = hash_password(password) if is_legacy_password(receptionist.password_hash) else None
        await self._receptionist_repository.record_login(receptionist.id, utcnow(), upgraded)
        if upgraded:
            logger.info("Re-hashed legacy credential for receptionist %s", receptionist.id)

        doctors = await self._doctor_repository.find_many(receptionist.linked_doctor_ids)
        token = issue_session_token(receptionist.id.value)
        logger.info("Receptionist %s logged in (%d linked doctors)", receptionist.id, len(doctors))
        return SessionResult(receptionist=receptionist, doctors=doctors, session_token=token)


class ValidateSessionUseCase:
    """Resolve a session token back to its receptionist and linked doctors."""

    def __init__(self, receptionist_repository: ReceptionistRepository, doctor_repository: DoctorRepository):
        self._receptionist_repository = receptionist_repository
        self._doctor_repository = doctor_repository

    async def execute(self, session_token: Optional[str]) -> SessionResult:
        receptionist_id = read_session_token(session_token or "")
        if not ObjectRef.is_valid(receptionist_id):
            raise InvalidSessionError("Session token is malformed")

        receptionist = await self._receptionist_repository.find_by_id(ObjectRef(receptionist_id))
        if receptionist is None:
            raise InvalidSessionError("Session expired or invalid")

        doctors = await self._doctor_repository.find_many(receptionist.linked_doctor_ids)
        return SessionResult(receptionist=receptionist, doctors=doctors)
