"""Doctor schedule use cases."""

import logging
from typing import List, Optional, Sequence

from ...core.utils.datetime_utils import parse_date_param
from ...domain.entities.schedule import DoctorSchedule
from ...domain.errors import MissingFieldError, ScheduleNotFoundError
from ...domain.value_objects import ObjectRef
from ..dto.reception_dto import SessionScope
from ..ports.repositories.schedule_repo import ScheduleRepository

logger = logging.getLogger(__name__)


class ManageSchedulesUseCase:
    """List, add and remove open time slots."""

    def __init__(self, schedule_repository: ScheduleRepository):
        self._schedule_repository = schedule_repository

    async def list(
        self,
        doctor_ids: Sequence[str],
        date: Optional[str] = None,
        scope: SessionScope = SessionScope.unrestricted(),
    ) -> List[DoctorSchedule]:
        if not doctor_ids:
            raise MissingFieldError("doctorId")
        refs = ObjectRef.parse_many(doctor_ids, "doctorId")
        scope.check_all(refs)
        return await self._schedule_repository.list_for_doctors(refs, parse_date_param(date))

    async def add_slot(
        self,
        doctor_id: Optional[str],
        date: Optional[str],
        time_slot: Optional[str],
        scope: SessionScope = SessionScope.unrestricted(),
    ) -> DoctorSchedule:
        ref, day, slot = self._validate(doctor_id, date, time_slot)
        scope.check(ref)
        schedule = await self._schedule_repository.add_slot(ref, day, slot)
        logger.info("Added slot %s to doctor %s on %s", slot, ref, day)
        return schedule

    async def remove_slot(
        self,
        doctor_id: Optional[str],
        date: Optional[str],
        time_slot: Optional[str],
        scope: SessionScope = SessionScope.unrestricted(),
    ) -> None:
        ref, day, slot = self._validate(doctor_id, date, time_slot)
        scope.check(ref)
        if not await self._schedule_repository.remove_slot(ref, day, slot):
            raise ScheduleNotFoundError(ref.value, day)
        logger.info("Removed slot %s from doctor %s on %s", slot, ref, day)

    @staticmethod
    def _validate(doctor_id, date, time_slot):
        if not doctor_id:
            raise MissingFieldError("doctorId")
        if not date:
            raise MissingFieldError("date")
        if not time_slot or not str(time_slot).strip():
            raise MissingFieldError("timeSlot")
        return ObjectRef.parse(doctor_id, "doctorId"), parse_date_param(date), str(time_slot).strip()
