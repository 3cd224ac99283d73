from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Union

from app.register.core.error_catalog import AppError, ErrorCatalog
from app.register.core.money import ZERO, to_money
from app.register.services.discounts import (
    NO_DISCOUNT,
    AppliedCoupon,
    CouponSelection,
    DiscountSelection,
    ManualFixed,
    ManualPercent,
    resolve_discount,
    resolve_total,
)

PRODUCT = "product"
TICKET = "ticket"

CASH = "cash"
CARD = "card"
PIX = "pix"
PAYMENT_METHODS = (CASH, CARD, PIX)


def product_unit_price(product) -> Decimal:
    if product.is_on_sale and product.sale_price:
        return to_money(product.sale_price)
    return to_money(product.price)


def ticket_ceiling(ticket_type) -> int:
    return max(0, ticket_type.quantity_available - ticket_type.quantity_sold)


@dataclass(frozen=True)
class ProductLine:
    product_id: object
    name: str
    unit_price: Decimal
    quantity: int
    stock_ceiling: int | None = None

    kind = PRODUCT

    @property
    def item_id(self):
        return self.product_id

    @property
    def event_id(self):
        return None

    @classmethod
    def from_product(cls, product, quantity: int = 1) -> "ProductLine":
        return cls(
            product_id=product.id,
            name=product.name,
            unit_price=product_unit_price(product),
            quantity=quantity,
            stock_ceiling=product.stock,
        )


@dataclass(frozen=True)
class TicketLine:
    ticket_type_id: object
    event_id: object
    name: str
    unit_price: Decimal
    quantity: int
    available_ceiling: int

    kind = TICKET

    @property
    def item_id(self):
        return self.ticket_type_id

    @classmethod
    def from_ticket_type(cls, ticket_type, quantity: int = 1) -> "TicketLine":
        event_name = ticket_type.event.name if ticket_type.event is not None else "Evento"
        return cls(
            ticket_type_id=ticket_type.id,
            event_id=ticket_type.event_id,
            name=f"{ticket_type.name} - {event_name}",
            unit_price=to_money(ticket_type.price),
            quantity=quantity,
            available_ceiling=ticket_ceiling(ticket_type),
        )


CartLine = Union[ProductLine, TicketLine]


def line_key(kind: str, item_id) -> tuple[str, str]:
    return kind, str(item_id)


def line_total(line: CartLine) -> Decimal:
    return to_money(line.unit_price * line.quantity)


@dataclass(frozen=True)
class CartPricing:
    subtotal: Decimal
    discount_amount: Decimal
    total: Decimal
    payment_method: str | None
    amount_paid: Decimal | None
    change_amount: Decimal


def change_for(total: Decimal, payment_method: str | None, amount_paid) -> Decimal:
    if payment_method != CASH or amount_paid is None:
        return ZERO
    return max(ZERO, to_money(amount_paid) - to_money(total))


def _require_positive_quantity(quantity: int) -> None:
    if quantity < 1:
        raise AppError(
            ErrorCatalog.VALIDATION_ERROR,
            details={"message": "quantity must be at least 1", "quantity": quantity},
        )


class Cart:
    """One terminal's working cart; pricing is derived from the live lines."""

    def __init__(self) -> None:
        self._lines: dict[tuple[str, str], CartLine] = {}
        self.selection: DiscountSelection = NO_DISCOUNT

    @property
    def lines(self) -> list[CartLine]:
        return list(self._lines.values())

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def quantity_of(self, kind: str, item_id) -> int:
        line = self._lines.get(line_key(kind, item_id))
        return line.quantity if line else 0

    def add_product(self, product, quantity: int = 1) -> ProductLine:
        _require_positive_quantity(quantity)
        key = line_key(PRODUCT, product.id)
        existing = self._lines.get(key)
        if existing is not None:
            line = replace(existing, quantity=existing.quantity + quantity)
        else:
            line = ProductLine.from_product(product, quantity)
        self._lines[key] = line
        return line

    def add_ticket(self, ticket_type, quantity: int = 1) -> TicketLine:
        _require_positive_quantity(quantity)
        key = line_key(TICKET, ticket_type.id)
        existing = self._lines.get(key)
        ceiling = ticket_ceiling(ticket_type)
        in_cart = existing.quantity if existing else 0
        if in_cart + quantity > ceiling:
            raise AppError(
                ErrorCatalog.TICKET_UNAVAILABLE,
                details={
                    "ticket_type_id": str(ticket_type.id),
                    "available": ceiling,
                    "in_cart": in_cart,
                    "requested": quantity,
                },
            )
        if existing is not None:
            line = replace(existing, quantity=in_cart + quantity, available_ceiling=ceiling)
        else:
            line = TicketLine.from_ticket_type(ticket_type, quantity)
        self._lines[key] = line
        return line

    def change_quantity(self, kind: str, item_id, delta: int) -> CartLine | None:
        key = line_key(kind, item_id)
        line = self._lines.get(key)
        if line is None:
            raise AppError(ErrorCatalog.NOT_FOUND, details={"message": "cart line not found", "item_id": str(item_id)})
        new_quantity = line.quantity + delta
        if new_quantity <= 0:
            del self._lines[key]
            return None
        if isinstance(line, TicketLine) and delta > 0 and new_quantity > line.available_ceiling:
            raise AppError(
                ErrorCatalog.TICKET_UNAVAILABLE,
                details={
                    "ticket_type_id": str(item_id),
                    "available": line.available_ceiling,
                    "in_cart": line.quantity,
                    "requested": delta,
                },
            )
        updated = replace(line, quantity=new_quantity)
        self._lines[key] = updated
        return updated

    def remove(self, kind: str, item_id) -> None:
        self._lines.pop(line_key(kind, item_id), None)

    def select_manual_percent(self, value) -> None:
        self.selection = ManualPercent(value)

    def select_manual_fixed(self, value) -> None:
        self.selection = ManualFixed(value)

    def apply_coupon(self, coupon: AppliedCoupon) -> None:
        self.selection = CouponSelection(coupon)

    def clear_discount(self) -> None:
        self.selection = NO_DISCOUNT

    def clear(self) -> None:
        self._lines.clear()
        self.selection = NO_DISCOUNT

    @property
    def subtotal(self) -> Decimal:
        return sum((line_total(line) for line in self._lines.values()), ZERO)

    @property
    def discount_amount(self) -> Decimal:
        return resolve_discount(self.subtotal, self.selection)

    @property
    def total(self) -> Decimal:
        return resolve_total(self.subtotal, self.discount_amount)


def price_cart(cart: Cart, payment_method: str | None = None, amount_paid=None) -> CartPricing:
    subtotal = cart.subtotal
    discount_amount = resolve_discount(subtotal, cart.selection)
    total = resolve_total(subtotal, discount_amount)
    paid = to_money(amount_paid) if payment_method == CASH and amount_paid is not None else None
    return CartPricing(
        subtotal=subtotal,
        discount_amount=discount_amount,
        total=total,
        payment_method=payment_method,
        amount_paid=paid,
        change_amount=change_for(total, payment_method, paid),
    )
