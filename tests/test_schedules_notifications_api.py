"""
Schedule slot and notification inbox tests.
"""

from datetime import timedelta

from receptiondesk.core.utils.datetime_utils import utcnow
from receptiondesk.domain.entities.notification import Notification
from receptiondesk.domain.enums import NotificationStatus, NotificationType
from receptiondesk.domain.value_objects import ObjectRef

from conftest import DOCTOR_A, DOCTOR_B


def _slot(date="2025-03-10", time_slot="10:00 AM", doctor_id=DOCTOR_A):
    return {"doctorId": doctor_id, "date": date, "timeSlot": time_slot}


def _add_notification(store, message, minutes_ago=0, doctor_id=DOCTOR_A, status=NotificationStatus.UNREAD):
    at = utcnow() - timedelta(minutes=minutes_ago)
    notification = Notification(
        doctor_id=ObjectRef(doctor_id),
        type=NotificationType.APPOINTMENT_CONFIRMED,
        message=message,
        id=ObjectRef.generate(),
        status=status,
        created_at=at,
        updated_at=at,
    )
    store.notifications.items[notification.id.value] = notification
    return notification


def test_add_and_list_slots(client):
    first = client.post("/api/schedules", json=_slot(time_slot="10:00 AM"))
    assert first.status_code == 200
    assert first.json()["schedule"]["availableSlots"] == ["10:00 AM"]

    client.post("/api/schedules", json=_slot(time_slot="11:00 AM"))
    client.post("/api/schedules", json=_slot(time_slot="11:00 AM"))
    client.post("/api/schedules", json=_slot(date="2025-03-09", time_slot="09:00 AM"))

    response = client.get("/api/schedules", params={"doctorId": DOCTOR_A})
    schedules = response.json()["schedules"]
    assert [schedule["date"] for schedule in schedules] == ["2025-03-09", "2025-03-10"]
    assert schedules[1]["availableSlots"] == ["10:00 AM", "11:00 AM"]

    by_date = client.get("/api/schedules", params={"doctorId": DOCTOR_A, "date": "2025-03-09"})
    assert len(by_date.json()["schedules"]) == 1


def test_remove_slot(client, store):
    client.post("/api/schedules", json=_slot(time_slot="10:00 AM"))
    client.post("/api/schedules", json=_slot(time_slot="11:00 AM"))

    response = client.request("DELETE", "/api/schedules", json=_slot(time_slot="10:00 AM"))
    assert response.status_code == 200
    assert response.json()["message"] == "Time slot removed"
    assert store.schedules.slots(DOCTOR_A, "2025-03-10") == ["11:00 AM"]


def test_remove_slot_without_schedule(client):
    response = client.request("DELETE", "/api/schedules", json=_slot(doctor_id=DOCTOR_B))
    assert response.status_code == 404
    assert response.json()["error"] == "SCHEDULE_NOT_FOUND"


def test_schedule_validation(client):
    missing = client.post("/api/schedules", json={"doctorId": DOCTOR_A, "date": "2025-03-10"})
    assert missing.status_code == 400
    assert missing.json()["details"]["field"] == "timeSlot"

    bad_date = client.post("/api/schedules", json=_slot(date="10/03/2025"))
    assert bad_date.status_code == 400

    bad_id = client.post("/api/schedules", json=_slot(doctor_id="doctor-1"))
    assert bad_id.json()["error"] == "INVALID_ID"


def test_notifications_newest_first_with_limit(client, store):
    _add_notification(store, "oldest", minutes_ago=30)
    _add_notification(store, "newest", minutes_ago=1)
    _add_notification(store, "middle", minutes_ago=10)
    _add_notification(store, "other doctor", doctor_id=DOCTOR_B)

    response = client.get("/api/notifications", params={"doctorId": DOCTOR_A})
    assert response.status_code == 200
    assert [n["message"] for n in response.json()["notifications"]] == ["newest", "middle", "oldest"]

    limited = client.get("/api/notifications", params={"doctorId": DOCTOR_A, "limit": 2})
    assert len(limited.json()["notifications"]) == 2

    assert client.get("/api/notifications", params={"doctorId": DOCTOR_A, "limit": 0}).status_code == 400


def test_notifications_filter_by_status(client, store):
    _add_notification(store, "unread one")
    _add_notification(store, "read one", status=NotificationStatus.READ)

    unread = client.get("/api/notifications", params={"doctorId": DOCTOR_A, "status": "unread"})
    assert [n["message"] for n in unread.json()["notifications"]] == ["unread one"]


def test_mark_notification_read(client, store):
    notification = _add_notification(store, "confirmed")

    response = client.put(
        "/api/notifications", json={"notificationId": notification.id.value, "status": "read"}
    )
    assert response.status_code == 200
    assert response.json()["notification"]["status"] == "read"
    assert store.notifications.items[notification.id.value].status == NotificationStatus.READ

    invalid = client.put("/api/notifications", json={"notificationId": notification.id.value, "status": "seen"})
    assert invalid.status_code == 400


def test_delete_notification(client, store):
    notification = _add_notification(store, "confirmed")

    response = client.delete("/api/notifications", params={"notificationId": notification.id.value})
    assert response.status_code == 200
    assert store.notifications.items == {}

    again = client.delete("/api/notifications", params={"notificationId": notification.id.value})
    assert again.status_code == 404
    assert again.json()["error"] == "NOTIFICATION_NOT_FOUND"

    assert client.delete("/api/notifications").status_code == 400
