from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import ClassVar, Union

from app.register.core.error_catalog import AppError, ErrorCatalog
from app.register.core.money import HUNDRED, ZERO, to_money

PERCENTAGE = "percentage"


class DiscountKind(str, Enum):
    NONE = "NONE"
    MANUAL_PERCENT = "MANUAL_PERCENT"
    MANUAL_FIXED = "MANUAL_FIXED"
    COUPON = "COUPON"


@dataclass(frozen=True)
class AppliedCoupon:
    """Snapshot of the coupon fields pricing needs, detached from the ORM row."""

    id: object
    code: str
    discount_type: str
    discount_value: Decimal

    @classmethod
    def from_model(cls, coupon) -> "AppliedCoupon":
        return cls(
            id=coupon.id,
            code=coupon.code,
            discount_type=coupon.discount_type,
            discount_value=to_money(coupon.discount_value),
        )

    @property
    def is_percentage(self) -> bool:
        return self.discount_type == PERCENTAGE


@dataclass(frozen=True)
class NoDiscount:
    kind: ClassVar[DiscountKind] = DiscountKind.NONE


@dataclass(frozen=True)
class ManualPercent:
    value: Decimal
    kind: ClassVar[DiscountKind] = DiscountKind.MANUAL_PERCENT

    def __post_init__(self):
        object.__setattr__(self, "value", _non_negative(self.value, "percent"))


@dataclass(frozen=True)
class ManualFixed:
    value: Decimal
    kind: ClassVar[DiscountKind] = DiscountKind.MANUAL_FIXED

    def __post_init__(self):
        object.__setattr__(self, "value", _non_negative(self.value, "fixed discount"))


@dataclass(frozen=True)
class CouponSelection:
    coupon: AppliedCoupon
    kind: ClassVar[DiscountKind] = DiscountKind.COUPON


DiscountSelection = Union[NoDiscount, ManualPercent, ManualFixed, CouponSelection]

NO_DISCOUNT = NoDiscount()


@dataclass(frozen=True)
class DiscountSnapshot:
    """The all-or-nothing discount triple recorded on a transaction."""

    discount_type: str | None
    discount_value: Decimal | None
    discount_amount: Decimal | None


EMPTY_SNAPSHOT = DiscountSnapshot(discount_type=None, discount_value=None, discount_amount=None)


def _non_negative(value, label: str) -> Decimal:
    amount = Decimal(str(value)) if not isinstance(value, Decimal) else value
    if amount < 0:
        raise AppError(
            ErrorCatalog.VALIDATION_ERROR,
            details={"message": f"{label} must be >= 0", "value": str(amount)},
        )
    return amount


def _percent_of(subtotal: Decimal, percent: Decimal) -> Decimal:
    return to_money(subtotal * percent / HUNDRED)


def resolve_discount(subtotal, selection: DiscountSelection) -> Decimal:
    subtotal = to_money(subtotal)
    if subtotal <= ZERO:
        return ZERO
    if isinstance(selection, ManualPercent):
        raw = _percent_of(subtotal, selection.value)
    elif isinstance(selection, ManualFixed):
        raw = to_money(selection.value)
    elif isinstance(selection, CouponSelection):
        coupon = selection.coupon
        if coupon.is_percentage:
            raw = _percent_of(subtotal, coupon.discount_value)
        else:
            raw = to_money(coupon.discount_value)
    else:
        return ZERO
    return max(ZERO, min(subtotal, raw))


def resolve_total(subtotal, discount_amount) -> Decimal:
    return max(ZERO, to_money(subtotal) - to_money(discount_amount))


def discount_snapshot(selection: DiscountSelection, discount_amount: Decimal) -> DiscountSnapshot:
    if isinstance(selection, CouponSelection):
        coupon = selection.coupon
        discount_type = "coupon_percent" if coupon.is_percentage else "coupon_fixed"
        return DiscountSnapshot(discount_type, coupon.discount_value, to_money(discount_amount))
    if isinstance(selection, ManualPercent):
        return DiscountSnapshot("percent", to_money(selection.value), to_money(discount_amount))
    if isinstance(selection, ManualFixed):
        return DiscountSnapshot("fixed", to_money(selection.value), to_money(discount_amount))
    return EMPTY_SNAPSHOT
