from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")


def to_money(value) -> Decimal:
    """Coerce ``value`` to a two-place Decimal.

    Floats go through ``str`` first so ``0.1`` becomes ``0.10`` rather than
    the binary expansion.
    """
    if value is None:
        return ZERO
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def money_or_none(value) -> Decimal | None:
    if value is None:
        return None
    return to_money(value)
