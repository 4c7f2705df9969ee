"""
Relay room registry, fan-out and websocket frame tests.
"""

import asyncio

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from receptiondesk.adapters.realtime.relay import Relay
from receptiondesk.api import deps
from receptiondesk.core.config import reset_settings

from conftest import DOCTOR_A, DOCTOR_B


class RecordingSession:
    def __init__(self, name: str):
        self.name = name
        self.received = []

    async def send_json(self, data):
        self.received.append(data)


class BrokenSession:
    async def send_json(self, data):
        raise ConnectionResetError("socket gone")


def test_join_is_idempotent_and_leave_is_safe():
    relay = Relay()
    session = RecordingSession("tab")

    relay.join(session, DOCTOR_A)
    relay.join(session, DOCTOR_A)
    assert relay.room_size(DOCTOR_A) == 1
    assert relay.session_count == 1

    relay.leave(session, DOCTOR_B)
    relay.leave(RecordingSession("stranger"), DOCTOR_A)
    assert relay.room_size(DOCTOR_A) == 1

    relay.leave(session, DOCTOR_A)
    assert relay.rooms() == {}
    assert relay.session_count == 0


def test_publish_reaches_only_the_room():
    relay = Relay()
    watching_a = RecordingSession("a")
    watching_b = RecordingSession("b")
    relay.join(watching_a, DOCTOR_A)
    relay.join(watching_b, DOCTOR_B)

    delivered = asyncio.run(relay.publish(DOCTOR_A, "appointment-update", {"_id": "1"}))

    assert delivered == 1
    assert watching_a.received == [{"event": "appointment-update", "data": {"_id": "1"}}]
    assert watching_b.received == []


def test_publish_to_empty_room():
    assert asyncio.run(Relay().publish(DOCTOR_A, "queue-update", {})) == 0


def test_publish_preserves_order_per_room():
    relay = Relay()
    session = RecordingSession("tab")
    relay.join(session, DOCTOR_A)

    async def publish_all():
        for n in range(5):
            await relay.publish(DOCTOR_A, "queue-update", {"n": n})

    asyncio.run(publish_all())
    assert [message["data"]["n"] for message in session.received] == [0, 1, 2, 3, 4]


def test_broken_session_is_dropped_from_every_room():
    relay = Relay()
    healthy = RecordingSession("ok")
    broken = BrokenSession()
    relay.join(healthy, DOCTOR_A)
    relay.join(broken, DOCTOR_A)
    relay.join(broken, DOCTOR_B)

    delivered = asyncio.run(relay.publish(DOCTOR_A, "appointment-update", {}))

    assert delivered == 1
    assert relay.room_size(DOCTOR_A) == 1
    assert relay.room_size(DOCTOR_B) == 0
    assert relay.rooms_of(broken) == []


# ---------------------------------------------------------------------------
# Websocket endpoint
# ---------------------------------------------------------------------------


def test_socket_ping_join_and_leave(client, app):
    with client.websocket_connect("/api/socket") as ws:
        ws.send_json({"type": "ping"})
        assert ws.receive_json() == {"type": "pong"}

        ws.send_json({"type": "join-doctor", "doctorId": DOCTOR_A.upper()})
        assert ws.receive_json() == {"type": "joined", "doctorId": DOCTOR_A}
        assert app.state.relay.room_size(DOCTOR_A) == 1

        ws.send_json({"type": "leave-doctor", "doctorId": DOCTOR_A})
        assert ws.receive_json() == {"type": "left", "doctorId": DOCTOR_A}
        assert app.state.relay.room_size(DOCTOR_A) == 0


def test_socket_reports_bad_frames_and_stays_open(client):
    with client.websocket_connect("/api/socket") as ws:
        ws.send_text("not json")
        assert ws.receive_json()["type"] == "error"

        ws.send_json(["a", "list"])
        assert ws.receive_json()["type"] == "error"

        ws.send_json({"type": "join-doctor", "doctorId": "bogus"})
        error = ws.receive_json()
        assert error["type"] == "error"
        assert error["doctorId"] == "bogus"

        ws.send_json({"type": "dance"})
        assert ws.receive_json()["type"] == "error"

        ws.send_json({"type": "ping"})
        assert ws.receive_json() == {"type": "pong"}


def test_socket_status_endpoint(client):
    response = client.get("/api/socket")
    assert response.status_code == 200
    data = response.json()
    assert data["enabled"] is True
    assert data["sessions"] == 0


def test_socket_refused_when_relay_disabled(client, monkeypatch):
    monkeypatch.setenv("RELAY_ENABLED", "false")
    reset_settings()

    with pytest.raises(WebSocketDisconnect) as exc_info:
        with client.websocket_connect("/api/socket") as ws:
            ws.receive_json()
    assert exc_info.value.code == 1013


def test_decision_reaches_joined_sockets_once_through_the_relay(app, store):
    """A PATCH drains through the real relay; only the doctor's room hears it, once per event."""
    app.state.gateway = store.gateway
    app.dependency_overrides.pop(deps.get_realtime_publisher)
    appointment = store.add_appointment()
    body = {"appointmentId": appointment.id.value, "status": "confirmed"}

    with TestClient(app) as shared:
        with shared.websocket_connect("/api/socket") as watching, shared.websocket_connect(
            "/api/socket"
        ) as other_doctor, shared.websocket_connect("/api/socket") as idle:
            watching.send_json({"type": "join-doctor", "doctorId": DOCTOR_A})
            assert watching.receive_json()["type"] == "joined"
            other_doctor.send_json({"type": "join-doctor", "doctorId": DOCTOR_B})
            assert other_doctor.receive_json()["type"] == "joined"

            assert shared.patch("/api/appointments", json=body).status_code == 200

            update = watching.receive_json()
            assert update["event"] == "appointment-update"
            assert update["data"]["_id"] == appointment.id.value
            assert update["data"]["status"] == "confirmed"
            queue = watching.receive_json()
            assert queue["event"] == "queue-update"
            assert queue["data"]["appointmentKey"] == appointment.id.value

            # A pong arriving next means nothing else was queued for that socket
            for ws in (watching, other_doctor, idle):
                ws.send_json({"type": "ping"})
                assert ws.receive_json() == {"type": "pong"}

            repeat = shared.patch("/api/appointments", json=body)
            assert repeat.status_code == 200
            assert repeat.json()["message"].startswith("Appointment already")
            watching.send_json({"type": "ping"})
            assert watching.receive_json() == {"type": "pong"}

    assert store.publisher.published == []
    assert store.gateway.opened is False
