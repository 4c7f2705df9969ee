"""
Patient queue tests.
"""

import pytest

from receptiondesk.application.ports.services.realtime_publisher import QUEUE_UPDATE
from receptiondesk.core.exceptions import DatabaseError
from receptiondesk.core.utils.datetime_utils import convert_to_24_hour
from receptiondesk.domain.enums import QueueStatus

from conftest import DOCTOR_A, DOCTOR_B


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("9:30 AM", "09:30"),
        ("12:15 AM", "00:15"),
        ("12:45 PM", "12:45"),
        ("2:05 pm", "14:05"),
        ("14:05", "14:05"),
        ("7:00", "07:00"),
        ("", "00:00"),
        ("after lunch", "after lunch"),
    ],
)
def test_convert_to_24_hour(raw, expected):
    assert convert_to_24_hour(raw) == expected


def test_queue_is_ordered_by_session_start_time(client, store):
    store.add_queue_entry("2:30 PM", patient_name="Afternoon")
    store.add_queue_entry("09:15", patient_name="Early")
    store.add_queue_entry("11:00 AM", patient_name="Late morning")
    store.add_queue_entry("12:00 PM", patient_name="Noon")
    store.add_queue_entry("10:00 AM", doctor_id=DOCTOR_B, patient_name="Other doctor")

    response = client.get("/api/patient-queue", params={"doctorId": DOCTOR_A})
    assert response.status_code == 200
    names = [entry["patientName"] for entry in response.json()["patientQueue"]]
    assert names == ["Early", "Late morning", "Noon", "Afternoon"]


def test_queue_filters_by_queue_status(client, store):
    store.add_queue_entry("09:00 AM", queue_status=QueueStatus.WAITING)
    store.add_queue_entry("09:30 AM", queue_status=QueueStatus.IN_SESSION)

    response = client.get("/api/patient-queue", params={"doctorId": DOCTOR_A, "queueStatus": "in-session"})
    entries = response.json()["patientQueue"]
    assert [entry["queueStatus"] for entry in entries] == ["in-session"]

    everything = client.get("/api/patient-queue", params={"doctorId": DOCTOR_A, "queueStatus": "all"})
    assert len(everything.json()["patientQueue"]) == 2


def test_queue_requires_valid_doctor_id(client):
    assert client.get("/api/patient-queue").status_code == 400
    response = client.get("/api/patient-queue", params={"doctorId": "12345"})
    assert response.status_code == 400
    assert response.json()["error"] == "INVALID_ID"


def test_update_queue_status_publishes(client, store):
    entry = store.add_queue_entry("10:00 AM")

    response = client.patch(
        "/api/patient-queue", json={"appointmentKey": entry.appointment_key, "queueStatus": "in-session"}
    )
    assert response.status_code == 200
    data = response.json()
    assert data["queueEntry"]["queueStatus"] == "in-session"
    assert store.queue.entries[entry.appointment_key].queue_status == QueueStatus.IN_SESSION

    assert store.publisher.events() == [QUEUE_UPDATE]
    doctor_id, _, payload = store.publisher.published[0]
    assert doctor_id == DOCTOR_A
    assert payload["queueStatus"] == "in-session"


def test_update_queue_status_survives_outbox_write_failure(client, store):
    entry = store.add_queue_entry("10:00 AM")

    async def unavailable_outbox(events):
        raise DatabaseError("outbox insert timed out")

    store.outbox.add = unavailable_outbox
    response = client.patch(
        "/api/patient-queue", json={"appointmentKey": entry.appointment_key, "queueStatus": "in-session"}
    )

    assert response.status_code == 200
    assert response.json()["queueEntry"]["queueStatus"] == "in-session"
    assert store.queue.entries[entry.appointment_key].queue_status == QueueStatus.IN_SESSION
    assert store.publisher.published == []


def test_update_queue_same_status_is_unchanged(client, store):
    entry = store.add_queue_entry("10:00 AM")

    response = client.patch(
        "/api/patient-queue", json={"appointmentKey": entry.appointment_key, "queueStatus": "waiting"}
    )
    assert response.status_code == 200
    assert response.json()["message"] == "Queue entry unchanged"
    assert store.outbox.events == {}
    assert store.publisher.published == []


def test_update_queue_rejects_transition_out_of_completed(client, store):
    entry = store.add_queue_entry("10:00 AM", queue_status=QueueStatus.COMPLETED)

    response = client.patch(
        "/api/patient-queue", json={"appointmentKey": entry.appointment_key, "queueStatus": "waiting"}
    )
    assert response.status_code == 409
    assert response.json()["error"] == "INVALID_STATUS_TRANSITION"


def test_update_queue_errors(client, store):
    entry = store.add_queue_entry("10:00 AM")

    unknown = client.patch("/api/patient-queue", json={"appointmentKey": "missing-key", "queueStatus": "completed"})
    assert unknown.status_code == 404
    assert unknown.json()["error"] == "QUEUE_ENTRY_NOT_FOUND"

    no_key = client.patch("/api/patient-queue", json={"queueStatus": "completed"})
    assert no_key.status_code == 400

    bad_status = client.patch(
        "/api/patient-queue", json={"appointmentKey": entry.appointment_key, "queueStatus": "sleeping"}
    )
    assert bad_status.status_code == 400
