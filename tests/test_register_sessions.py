from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from app.register.core.error_catalog import AppError, ErrorCatalog
from app.register.db.models import AuditEvent, RegisterSession
from app.register.repos.register_sessions import RegisterSessionRepository
from app.register.services.register_sessions import RegisterSessionService
from tests.register_helpers import (
    checkout,
    checkout_payload,
    close_session,
    create_product,
    open_session,
    product_line,
)


def test_open_session_and_current_summary(client):
    opened = open_session(client, initial_fund=150.0)
    assert opened["status"] == "OPEN"
    assert Decimal(opened["initial_fund"]) == Decimal("150.00")
    assert opened["closed_at"] is None

    current = client.get("/register/sessions/current")
    assert current.status_code == 200
    summary = current.json()["summary"]
    assert summary["session"]["id"] == opened["id"]
    assert Decimal(summary["expected_balance"]) == Decimal("150.00")
    assert summary["transaction_count"] == 0
    assert [row["payment_method"] for row in summary["by_payment_method"]] == ["cash", "card", "pix"]


def test_current_is_null_without_session(client):
    response = client.get("/register/sessions/current")
    assert response.status_code == 200
    assert response.json() == {"summary": None}


def test_second_open_is_rejected(client):
    open_session(client)
    response = client.post(
        "/register/sessions/actions",
        headers={"Idempotency-Key": "second-open"},
        json={"action": "OPEN", "operator_id": "op-2", "initial_fund": 10},
    )
    assert response.status_code == 409
    assert response.json()["code"] == ErrorCatalog.SESSION_ALREADY_OPEN.code


def test_open_requires_non_negative_fund(client):
    response = client.post(
        "/register/sessions/actions",
        headers={"Idempotency-Key": "negative-fund"},
        json={"action": "OPEN", "operator_id": "op-1", "initial_fund": -5},
    )
    assert response.status_code == 422
    assert response.json()["code"] == ErrorCatalog.VALIDATION_ERROR.code


def test_close_reconciles_cash_sales_only(client, db_session):
    product_a = create_product(db_session, name="Ingresso promo", price="30.00", stock=None)
    product_b = create_product(db_session, name="Kit", price="45.00", stock=None)
    product_c = create_product(db_session, name="Boné", price="60.00", stock=None)
    open_session(client, initial_fund=200.0)

    assert checkout(client, checkout_payload([product_line(product_a)], payment_method="cash")).status_code == 201
    assert checkout(client, checkout_payload([product_line(product_b)], payment_method="cash")).status_code == 201
    assert checkout(client, checkout_payload([product_line(product_c)], payment_method="card")).status_code == 201

    summary = client.get("/register/sessions/current").json()["summary"]
    assert Decimal(summary["cash_total"]) == Decimal("75.00")
    assert summary["transaction_count"] == 3

    response = close_session(client, actual_balance=280.0)
    assert response.status_code == 200
    closed = response.json()
    assert closed["status"] == "CLOSED"
    assert Decimal(closed["cash_total"]) == Decimal("75.00")
    assert Decimal(closed["expected_balance"]) == Decimal("275.00")
    assert Decimal(closed["actual_balance"]) == Decimal("280.00")
    assert Decimal(closed["difference"]) == Decimal("5.00")
    assert closed["difference_type"] == "OVERAGE"
    assert closed["closed_at"] is not None

    audit = db_session.execute(
        select(AuditEvent).where(AuditEvent.action == "register_session.close")
    ).scalars().first()
    assert audit is not None
    assert audit.after_payload["difference_type"] == "OVERAGE"


def test_close_shortage_and_exact(client):
    open_session(client, initial_fund=100.0)
    shortage = close_session(client, actual_balance=90.0).json()
    assert shortage["difference_type"] == "SHORTAGE"
    assert Decimal(shortage["difference"]) == Decimal("-10.00")

    open_session(client, initial_fund=100.0)
    exact = close_session(client, actual_balance=100.0).json()
    assert exact["difference_type"] == "EXACT"


def test_close_without_open_session(client):
    response = close_session(client, actual_balance=10.0)
    assert response.status_code == 409
    assert response.json()["code"] == ErrorCatalog.SESSION_NOT_OPEN.code


def test_close_requires_counted_balance(client):
    open_session(client)
    response = client.post(
        "/register/sessions/actions",
        headers={"Idempotency-Key": "close-missing"},
        json={"action": "CLOSE", "operator_id": "op-1"},
    )
    assert response.status_code == 422


def test_reopen_after_close_starts_new_session(client, db_session):
    first = open_session(client)
    close_session(client, actual_balance=200.0)
    second = open_session(client)
    assert second["id"] != first["id"]

    statuses = sorted(row.status for row in db_session.execute(select(RegisterSession)).scalars().all())
    assert statuses == ["CLOSED", "OPEN"]


def test_open_replay_returns_same_session(client):
    first = open_session(client, key="open-once")
    replay = client.post(
        "/register/sessions/actions",
        headers={"Idempotency-Key": "open-once"},
        json={"action": "OPEN", "operator_id": "op-1", "initial_fund": 200.0},
    )
    assert replay.status_code == 200
    assert replay.json()["id"] == first["id"]
    assert replay.headers.get("X-Idempotency-Result") == ErrorCatalog.IDEMPOTENCY_REPLAY.code


def test_actions_require_idempotency_key(client):
    response = client.post(
        "/register/sessions/actions",
        json={"action": "OPEN", "operator_id": "op-1", "initial_fund": 10},
    )
    assert response.status_code == 400
    assert response.json()["code"] == ErrorCatalog.IDEMPOTENCY_KEY_REQUIRED.code


def test_list_and_get_sessions(client):
    first = open_session(client)
    close_session(client, actual_balance=200.0)
    second = open_session(client)

    closed = client.get("/register/sessions", params={"status": "CLOSED"}).json()
    assert closed["total"] == 1
    assert closed["rows"][0]["id"] == first["id"]

    everything = client.get("/register/sessions").json()
    assert everything["total"] == 2

    detail = client.get(f"/register/sessions/{second['id']}")
    assert detail.status_code == 200
    assert detail.json()["status"] == "OPEN"

    missing = client.get("/register/sessions/00000000-0000-0000-0000-000000000000")
    assert missing.status_code == 404


def test_database_rejects_second_open_session(client, db_session):
    open_session(client)

    db_session.add(RegisterSession(operator_id="op-2", initial_fund=Decimal("0"), status="OPEN"))
    with pytest.raises(IntegrityError):
        db_session.commit()
    db_session.rollback()

    assert client.get("/register/sessions/current").json()["summary"]["session"]["operator_id"] == "op-1"


def test_open_maps_unique_violation_to_already_open(client, db_session, monkeypatch):
    open_session(client)
    monkeypatch.setattr(RegisterSessionRepository, "get_open", lambda self, *, for_update=False: None)

    with pytest.raises(AppError) as excinfo:
        RegisterSessionService(db_session).open_session(operator_id="op-2", initial_fund=10)
    assert excinfo.value.error == ErrorCatalog.SESSION_ALREADY_OPEN
    open_count = db_session.execute(
        select(func.count()).select_from(RegisterSession).where(RegisterSession.status == "OPEN")
    ).scalar_one()
    assert open_count == 1
