def test_health_endpoints(client):
    assert client.get("/api/health").json() == {"status": "ok"}

    live = client.get("/api/health/live")
    assert live.status_code == 200
    assert live.json()["status"] == "ok"

    ready = client.get("/api/health/ready")
    assert ready.status_code in {200, 503}
    payload = ready.json()
    assert "database" in payload
    assert "engine" in payload


def test_ready_reports_engine_state(client):
    payload = client.get("/api/health/ready").json()

    assert payload["database"]["schema_ok"] is True
    assert payload["engine"] == {
        "ready": True,
        "state": "Empty",
        "busy_operation": None,
        "saved_schedules": 0,
    }
