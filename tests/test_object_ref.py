"""
ObjectRef and domain entity tests.
"""

import pytest
from bson import ObjectId

from receptiondesk.core.utils.datetime_utils import to_schedule_date, utcnow
from receptiondesk.domain.entities.appointment import Appointment
from receptiondesk.domain.entities.doctor import Doctor
from receptiondesk.domain.entities.patient_queue_entry import PatientQueueEntry
from receptiondesk.domain.enums import AppointmentStatus, QueueStatus, parse_enum
from receptiondesk.domain.errors import (
    InvalidFieldValueError,
    InvalidIdentifierError,
    InvalidStatusTransitionError,
)
from receptiondesk.domain.value_objects import ObjectRef

HEX = "68c15cac7a7bea4f6c332685"


def test_parse_normalizes_case_and_whitespace():
    assert ObjectRef.parse(f"  {HEX.upper()} ").value == HEX
    assert ObjectRef.parse(ObjectId(HEX)) == ObjectRef(HEX)
    assert str(ObjectRef(HEX)) == HEX


@pytest.mark.parametrize("raw", [None, "", "123", "zz" * 12, HEX + "0", 42, ["list"]])
def test_parse_rejects_malformed(raw):
    assert not ObjectRef.is_valid(raw)
    with pytest.raises(InvalidIdentifierError) as exc_info:
        ObjectRef.parse(raw, "doctorId")
    assert exc_info.value.error_code == "INVALID_ID"
    assert exc_info.value.details["field"] == "doctorId"


def test_parse_many_deduplicates_in_order():
    other = "68c195256b30441fa3cab701"
    refs = ObjectRef.parse_many([HEX, other, HEX.upper()], "doctorId")
    assert [ref.value for ref in refs] == [HEX, other]


def test_matches_either_stored_form():
    ref = ObjectRef(HEX)
    assert ref.matches(ObjectId(HEX))
    assert ref.matches(HEX.upper())
    assert not ref.matches("68c195256b30441fa3cab701")
    assert not ref.matches(None)


def test_filter_lists_both_forms():
    query = ObjectRef.filter("doctorId", [ObjectRef(HEX)])
    assert query == {"doctorId": {"$in": [ObjectId(HEX), HEX]}}


def test_generate_is_valid():
    assert ObjectRef.is_valid(ObjectRef.generate().value)


def _appointment(status=AppointmentStatus.PENDING):
    return Appointment(
        id=ObjectRef.generate(),
        doctor_id=ObjectRef(HEX),
        appointment_date="2025-03-10",
        time_slot="10:00 AM",
        status=status,
        patient_name="Ali",
    )


def test_appointment_transitions():
    pending = _appointment()
    confirmed = pending.with_status(AppointmentStatus.CONFIRMED, "ignored", utcnow())
    assert confirmed.status == AppointmentStatus.CONFIRMED
    assert confirmed.rejection_reason is None
    assert pending.status == AppointmentStatus.PENDING

    rejected = confirmed.with_status(AppointmentStatus.REJECTED, "Doctor away", utcnow())
    assert rejected.rejection_reason == "Doctor away"
    assert rejected.status.is_terminal

    with pytest.raises(InvalidStatusTransitionError):
        rejected.with_status(AppointmentStatus.CONFIRMED, None, utcnow())


def test_appointment_payload_round_trip_keeps_key():
    appointment = _appointment()
    restored = Appointment.from_payload(appointment.to_payload())
    assert restored.key == appointment.id.value
    assert restored.doctor_id == appointment.doctor_id


def test_queue_entry_from_confirmed_appointment():
    appointment = _appointment(AppointmentStatus.CONFIRMED)
    entry = PatientQueueEntry.from_appointment(appointment, utcnow())
    assert entry.appointment_key == appointment.key
    assert entry.queue_status == QueueStatus.WAITING
    assert entry.session_start_time == "10:00 AM"

    with pytest.raises(InvalidStatusTransitionError):
        entry.with_changes(QueueStatus.COMPLETED, None, utcnow()).with_changes(
            QueueStatus.IN_SESSION, None, utcnow()
        )


def test_parse_enum_is_case_insensitive():
    assert parse_enum(QueueStatus, " In-Session ", "queueStatus") == QueueStatus.IN_SESSION
    with pytest.raises(InvalidFieldValueError) as exc_info:
        parse_enum(AppointmentStatus, "approved", "status")
    assert "pending" in exc_info.value.details["allowed"]


def test_doctor_name_is_required():
    with pytest.raises(InvalidFieldValueError):
        Doctor(id=ObjectRef(HEX), name=" ")


def test_to_schedule_date_accepts_legacy_timestamps():
    assert to_schedule_date("2025-03-10T09:00:00.000Z") == "2025-03-10"
    assert to_schedule_date("2025-03-10") == "2025-03-10"
    assert to_schedule_date(None) is None
