from tests.register_helpers import open_session


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "ok"
    assert payload["service"] == "PDV-REGISTER"
    assert payload["trace_id"]


def test_ready_reports_database_and_register_state(client):
    response = client.get("/ready")
    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "ready"
    assert payload["database"] in ("sqlite", "postgresql")
    assert payload["register"] == "CLOSED"

    open_session(client)
    assert client.get("/ready").json()["register"] == "OPEN"


def test_trace_id_is_echoed(client):
    response = client.get("/health", headers={"X-Trace-ID": "trace-abc"})
    assert response.headers["X-Trace-ID"] == "trace-abc"
    assert response.json()["trace_id"] == "trace-abc"


def test_metrics_endpoint(client):
    response = client.get("/register/ops/metrics")
    assert response.status_code == 200
    assert response.headers["Cache-Control"] == "no-store"
    assert "http_requests_total" in response.text
    assert "register_session_open 0.0" in response.text

    open_session(client)
    assert "register_session_open 1.0" in client.get("/register/ops/metrics").text
