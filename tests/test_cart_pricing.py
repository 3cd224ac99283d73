import uuid
from decimal import Decimal
from types import SimpleNamespace

import pytest

from app.register.core.error_catalog import AppError, ErrorCatalog
from app.register.services.cart import PRODUCT, TICKET, Cart, price_cart
from app.register.services.discounts import AppliedCoupon, DiscountKind


def _product(price="10.00", sale_price=None, stock=5, name="Caneca"):
    return SimpleNamespace(
        id=uuid.uuid4(),
        name=name,
        price=Decimal(price),
        sale_price=Decimal(sale_price) if sale_price else None,
        is_on_sale=sale_price is not None,
        stock=stock,
    )


def _ticket_type(available=10, sold=0, price="50.00"):
    event = SimpleNamespace(id=uuid.uuid4(), name="Festival")
    return SimpleNamespace(
        id=uuid.uuid4(),
        event_id=event.id,
        event=event,
        name="Pista",
        price=Decimal(price),
        quantity_available=available,
        quantity_sold=sold,
    )


def test_adding_same_product_merges_lines():
    cart = Cart()
    product = _product()
    cart.add_product(product, 2)
    cart.add_product(product, 1)
    assert len(cart.lines) == 1
    assert cart.quantity_of(PRODUCT, product.id) == 3
    assert cart.subtotal == Decimal("30.00")


def test_sale_price_used_when_on_sale():
    cart = Cart()
    cart.add_product(_product(price="20.00", sale_price="15.00"))
    assert cart.subtotal == Decimal("15.00")


def test_ticket_ceiling_is_cumulative():
    ticket_type = _ticket_type(available=10, sold=8)
    cart = Cart()
    cart.add_ticket(ticket_type)
    cart.add_ticket(ticket_type)

    with pytest.raises(AppError) as excinfo:
        cart.add_ticket(ticket_type)
    assert excinfo.value.error == ErrorCatalog.TICKET_UNAVAILABLE
    assert cart.quantity_of(TICKET, ticket_type.id) == 2


def test_ticket_line_name_includes_event():
    cart = Cart()
    line = cart.add_ticket(_ticket_type())
    assert line.name == "Pista - Festival"


def test_change_quantity_rechecks_ticket_ceiling():
    ticket_type = _ticket_type(available=3, sold=1)
    cart = Cart()
    cart.add_ticket(ticket_type, 2)
    with pytest.raises(AppError):
        cart.change_quantity(TICKET, ticket_type.id, 1)
    cart.change_quantity(TICKET, ticket_type.id, -1)
    assert cart.quantity_of(TICKET, ticket_type.id) == 1


def test_change_quantity_to_zero_removes_line():
    product = _product()
    cart = Cart()
    cart.add_product(product)
    assert cart.change_quantity(PRODUCT, product.id, -1) is None
    assert cart.is_empty


def test_change_quantity_of_missing_line():
    with pytest.raises(AppError) as excinfo:
        Cart().change_quantity(PRODUCT, uuid.uuid4(), 1)
    assert excinfo.value.error == ErrorCatalog.NOT_FOUND


def test_quantity_must_be_positive():
    with pytest.raises(AppError):
        Cart().add_product(_product(), 0)


def test_only_one_discount_source_is_active():
    cart = Cart()
    cart.add_product(_product(price="100.00"))
    cart.select_manual_percent(Decimal("10"))
    cart.apply_coupon(AppliedCoupon(id="c", code="FIX5", discount_type="fixed", discount_value=Decimal("5")))
    assert cart.selection.kind == DiscountKind.COUPON
    assert cart.discount_amount == Decimal("5.00")

    cart.select_manual_fixed(Decimal("20"))
    assert cart.selection.kind == DiscountKind.MANUAL_FIXED
    assert cart.total == Decimal("80.00")

    cart.clear_discount()
    assert cart.total == Decimal("100.00")


def test_discount_reprices_when_cart_changes():
    product = _product(price="50.00")
    cart = Cart()
    cart.add_product(product)
    cart.select_manual_percent(Decimal("10"))
    assert cart.discount_amount == Decimal("5.00")
    cart.add_product(product)
    assert cart.discount_amount == Decimal("10.00")


def test_cash_change_and_card_zero_change():
    cart = Cart()
    cart.add_product(_product(price="37.50"))

    cash = price_cart(cart, "cash", Decimal("50"))
    assert cash.total == Decimal("37.50")
    assert cash.change_amount == Decimal("12.50")

    card = price_cart(cart, "card", Decimal("50"))
    assert card.amount_paid is None
    assert card.change_amount == Decimal("0.00")


def test_clear_resets_lines_and_selection():
    cart = Cart()
    cart.add_product(_product())
    cart.select_manual_fixed(Decimal("1"))
    cart.clear()
    assert cart.is_empty
    assert cart.selection.kind == DiscountKind.NONE
