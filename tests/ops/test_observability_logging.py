import json
import logging
from types import SimpleNamespace

from starlette.requests import Request
from starlette.responses import Response

from app.register.middleware.observability import build_request_log_payload


def test_build_request_log_payload():
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/register/transactions",
        "headers": [(b"idempotency-key", b"sale-1")],
        "route": SimpleNamespace(path="/register/transactions"),
    }
    request = Request(scope)
    request.state.trace_id = "trace-1"
    request.state.error_code = "CART_EMPTY"
    request.state.error_class = "AppError"
    response = Response(status_code=422)

    payload = build_request_log_payload(request=request, response=response, latency_ms=12.3456)

    assert payload["trace_id"] == "trace-1"
    assert payload["route"] == "/register/transactions"
    assert payload["method"] == "POST"
    assert payload["status_code"] == 422
    assert payload["latency_ms"] == 12.35
    assert payload["idempotency_key"] == "sale-1"
    assert payload["error_code"] == "CART_EMPTY"


def test_request_log_line_is_json(client, caplog):
    caplog.set_level(logging.INFO, logger="register.request")
    client.get("/health", headers={"X-Trace-ID": "trace-log"})

    lines = [json.loads(record.getMessage()) for record in caplog.records if record.name == "register.request"]
    assert lines
    assert lines[-1]["trace_id"] == "trace-log"
    assert lines[-1]["route"] == "/health"
    assert lines[-1]["status_code"] == 200


def test_reconciliation_mismatch_logged_as_warning(client, caplog):
    from tests.register_helpers import close_session, open_session

    caplog.set_level(logging.INFO, logger="app.register.services.register_sessions")
    open_session(client, initial_fund=50.0)
    close_session(client, actual_balance=40.0)

    closed = [
        record
        for record in caplog.records
        if record.name == "app.register.services.register_sessions" and "register_session_closed" in record.getMessage()
    ]
    assert closed
    assert closed[-1].levelno == logging.WARNING
    assert json.loads(closed[-1].getMessage())["difference_type"] == "SHORTAGE"
