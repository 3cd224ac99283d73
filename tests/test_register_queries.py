from datetime import date, timedelta

from tests.register_helpers import (
    checkout,
    checkout_payload,
    close_session,
    create_product,
    open_session,
    product_line,
)


def test_transactions_by_session(client, db_session):
    product = create_product(db_session, price="10.00", stock=None)
    first_session = open_session(client)
    checkout(client, checkout_payload([product_line(product)], payment_method="cash"))
    checkout(client, checkout_payload([product_line(product, 2)], payment_method="card"))
    close_session(client, actual_balance=210.0)

    second_session = open_session(client)
    checkout(client, checkout_payload([product_line(product)], payment_method="pix"))

    first = client.get("/register/transactions", params={"session_id": first_session["id"]}).json()
    assert first["total"] == 2
    assert {row["payment_method"] for row in first["rows"]} == {"cash", "card"}

    second = client.get("/register/transactions", params={"session_id": second_session["id"]}).json()
    assert second["total"] == 1
    assert second["rows"][0]["lines"][0]["quantity"] == 1

    cash_only = client.get("/register/transactions", params={"payment_method": "cash"}).json()
    assert cash_only["total"] == 1


def test_transactions_by_time_range(client, db_session):
    product = create_product(db_session, price="10.00", stock=None)
    open_session(client)
    checkout(client, checkout_payload([product_line(product)], payment_method="card"))

    today = date.today()
    around = client.get(
        "/register/transactions",
        params={"from_ts": (today - timedelta(days=1)).isoformat(), "to_ts": (today + timedelta(days=1)).isoformat()},
    ).json()
    assert around["total"] == 1

    future = client.get(
        "/register/transactions",
        params={"from_ts": (today + timedelta(days=2)).isoformat()},
    ).json()
    assert future["total"] == 0


def test_inverted_time_range_rejected(client):
    response = client.get("/register/transactions", params={"from_ts": "2026-05-02", "to_ts": "2026-05-01"})
    assert response.status_code == 422
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_transaction_detail(client, db_session):
    product = create_product(db_session, name="Chaveiro", price="7.50", stock=None)
    open_session(client)
    created = checkout(client, checkout_payload([product_line(product, 2)], payment_method="card")).json()

    detail = client.get(f"/register/transactions/{created['id']}")
    assert detail.status_code == 200
    assert detail.json()["lines"][0]["name"] == "Chaveiro"
    assert detail.json()["total"] == "15.00"

    missing = client.get("/register/transactions/00000000-0000-0000-0000-000000000000")
    assert missing.status_code == 404
    assert missing.json()["code"] == "NOT_FOUND"


def test_page_size_is_clamped(client, db_session):
    product = create_product(db_session, price="1.00", stock=None)
    open_session(client)
    for _ in range(3):
        checkout(client, checkout_payload([product_line(product)], payment_method="card"))

    page = client.get("/register/transactions", params={"limit": 2}).json()
    assert page["total"] == 3
    assert len(page["rows"]) == 2

    floor = client.get("/register/transactions", params={"limit": 0}).json()
    assert len(floor["rows"]) == 1
