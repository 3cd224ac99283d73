from datetime import date, timedelta
from decimal import Decimal

from app.register.core.error_catalog import ErrorCatalog
from tests.register_helpers import (
    create_coupon,
    create_product,
    create_ticket_type,
    product_line,
    ticket_line,
)


def test_catalog_lists_only_active_items(client, db_session):
    create_product(db_session, name="Ativo", price="20.00", sale_price="15.00", stock=None)
    create_product(db_session, name="Inativo", active=False)
    create_ticket_type(db_session, name="Camarote", quantity_available=10, quantity_sold=4)
    create_ticket_type(db_session, name="Oculto", event_active=False)

    response = client.get("/register/catalog")
    assert response.status_code == 200
    body = response.json()
    assert [row["name"] for row in body["products"]] == ["Ativo"]
    assert Decimal(body["products"][0]["unit_price"]) == Decimal("15.00")
    assert body["products"][0]["stock"] is None
    assert [row["name"] for row in body["ticket_types"]] == ["Camarote"]
    assert body["ticket_types"][0]["available"] == 6


def test_validate_coupon_preview(client, db_session):
    create_coupon(db_session, code="DEZ", discount_value="10")
    response = client.post("/register/coupons/validate", json={"code": "dez", "subtotal": 80})
    assert response.status_code == 200
    body = response.json()
    assert body["valid"] is True
    assert body["reason"] is None
    assert body["coupon"]["code"] == "DEZ"
    assert Decimal(body["discount_amount"]) == Decimal("8.00")
    assert Decimal(body["total"]) == Decimal("72.00")


def test_validate_coupon_rejections_are_typed(client, db_session):
    yesterday = date.today() - timedelta(days=2)
    create_coupon(db_session, code="VELHO", valid_until=yesterday)
    create_coupon(db_session, code="MINIMO", minimum_order_value="100")

    expired = client.post("/register/coupons/validate", json={"code": "VELHO", "subtotal": 50}).json()
    assert expired["valid"] is False
    assert expired["reason"] == "EXPIRED"
    assert expired["coupon"] is None

    below = client.post("/register/coupons/validate", json={"code": "MINIMO", "subtotal": 50}).json()
    assert below["reason"] == "BELOW_MINIMUM"
    assert Decimal(below["minimum_order_value"]) == Decimal("100.00")
    assert Decimal(below["total"]) == Decimal("50.00")

    unknown = client.post("/register/coupons/validate", json={"code": "NADA", "subtotal": 50}).json()
    assert unknown["reason"] == "NOT_FOUND"


def test_quote_prices_cart_without_committing(client, db_session):
    product = create_product(db_session, price="40.00", stock=2)
    ticket_type = create_ticket_type(db_session, price="60.00", quantity_available=5)
    create_coupon(db_session, code="QUINZE", discount_type="fixed", discount_value="15")

    response = client.post(
        "/register/cart/quote",
        json={
            "lines": [product_line(product), ticket_line(ticket_type, 2)],
            "discount": {"kind": "COUPON", "coupon_code": "QUINZE"},
            "payment_method": "cash",
            "amount_paid": 200,
        },
    )
    assert response.status_code == 200
    body = response.json()
    assert body["discount_kind"] == "COUPON"
    assert body["coupon_code"] == "QUINZE"
    assert Decimal(body["subtotal"]) == Decimal("160.00")
    assert Decimal(body["discount_amount"]) == Decimal("15.00")
    assert Decimal(body["total"]) == Decimal("145.00")
    assert Decimal(body["change_amount"]) == Decimal("55.00")
    assert Decimal(body["lines"][1]["line_total"]) == Decimal("120.00")

    db_session.refresh(product)
    db_session.refresh(ticket_type)
    assert product.stock == 2
    assert ticket_type.quantity_sold == 0


def test_quote_rejects_invalid_coupon(client, db_session):
    product = create_product(db_session, price="40.00")
    response = client.post(
        "/register/cart/quote",
        json={"lines": [product_line(product)], "discount": {"kind": "COUPON", "coupon_code": "FALSO"}},
    )
    assert response.status_code == 422
    assert response.json()["code"] == ErrorCatalog.COUPON_REJECTED.code
    assert response.json()["details"]["reason"] == "NOT_FOUND"


def test_quote_requires_value_for_manual_discount(client, db_session):
    product = create_product(db_session, price="40.00")
    response = client.post(
        "/register/cart/quote",
        json={"lines": [product_line(product)], "discount": {"kind": "MANUAL_FIXED"}},
    )
    assert response.status_code == 422
    assert response.json()["code"] == ErrorCatalog.VALIDATION_ERROR.code
