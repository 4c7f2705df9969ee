"""
Health endpoint tests.
"""

from receptiondesk.domain.enums import OutboxStatus


def test_health_endpoint(client, store):
    """Test that /api/health pings the store and reports counts."""
    store.gateway.counts = {"receptionists": 2, "doctors": 2, "appointments": 7}
    response = client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["database"]["connected"] is True
    assert data["database"]["ping"] == "ok"
    assert "responseTimeMs" in data["database"]
    assert data["collections"] == {"receptionists": 2, "doctors": 2, "appointments": 7}
    assert "version" in data
    assert "service" in data
    assert "timestamp" in data


def test_health_reports_outbox_backlog(client, store):
    store.add_appointment()
    response = client.patch(
        "/api/appointments",
        json={"appointmentId": next(iter(store.appointments.items)), "status": "confirmed"},
    )
    assert response.status_code == 200

    data = client.get("/api/health").json()
    assert data["outbox"] == {OutboxStatus.DONE.value: 1}


def test_health_unavailable_database(client, store):
    store.gateway.healthy = False
    response = client.get("/api/health")
    assert response.status_code == 503
    data = response.json()
    assert data["status"] == "unhealthy"
    assert data["database"]["connected"] is False
    assert data["database"]["error"]


def test_liveness_does_not_touch_database(client, store):
    store.gateway.healthy = False
    response = client.get("/health/live")
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["status"] == "alive"


def test_root_endpoint(client):
    """Test that the root endpoint returns API information."""
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert "service" in data
    assert "version" in data
    assert data["status"] == "running"
    assert data["endpoints"]["relay"] == "WS /api/socket"


def test_request_id_is_echoed(client):
    response = client.get("/health/live", headers={"X-Request-ID": "abc-123"})
    assert response.headers["X-Request-ID"] == "abc-123"
    assert response.json()["request_id"] == "abc-123"
    assert "X-Process-Time" in response.headers
