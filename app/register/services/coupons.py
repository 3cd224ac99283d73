from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum

from app.register.core.logging import log_json
from app.register.core.metrics import metrics
from app.register.core.money import ZERO, to_money
from app.register.core.time_windows import end_of_day, start_of_day, store_now, store_timezone
from app.register.repos.coupons import CouponRepository
from app.register.services.discounts import AppliedCoupon, CouponSelection, resolve_discount

logger = logging.getLogger(__name__)


class CouponRejection(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    EXPIRED = "EXPIRED"
    NOT_YET_VALID = "NOT_YET_VALID"
    USES_EXHAUSTED = "USES_EXHAUSTED"
    BELOW_MINIMUM = "BELOW_MINIMUM"
    ALREADY_USED = "ALREADY_USED"


@dataclass(frozen=True)
class CouponEvaluation:
    coupon: AppliedCoupon | None
    discount_amount: Decimal
    rejection: CouponRejection | None = None
    minimum_order_value: Decimal | None = None

    @property
    def valid(self) -> bool:
        return self.rejection is None


def normalize_code(raw: str | None) -> str:
    return (raw or "").strip().upper()


def check_coupon(coupon, subtotal, *, now: datetime, tz=None) -> CouponRejection | None:
    """Window, usage and minimum-order checks; date bounds are inclusive store-local days."""
    tz = tz or store_timezone()
    now = now.replace(tzinfo=tz) if now.tzinfo is None else now.astimezone(tz)
    if coupon.valid_until is not None and now > end_of_day(coupon.valid_until, tz):
        return CouponRejection.EXPIRED
    if coupon.valid_from is not None and now < start_of_day(coupon.valid_from, tz):
        return CouponRejection.NOT_YET_VALID
    if coupon.max_uses is not None and (coupon.current_uses or 0) >= coupon.max_uses:
        return CouponRejection.USES_EXHAUSTED
    if coupon.minimum_order_value is not None and to_money(subtotal) < to_money(coupon.minimum_order_value):
        return CouponRejection.BELOW_MINIMUM
    return None


class CouponEvaluator:
    """Read-only coupon validation; usage counters only move at checkout."""

    def __init__(self, db, *, tz=None):
        self.repo = CouponRepository(db)
        self.tz = tz or store_timezone()

    def evaluate(
        self,
        code: str | None,
        subtotal,
        *,
        customer_id: str | None = None,
        now: datetime | None = None,
    ) -> CouponEvaluation:
        normalized = normalize_code(code)
        coupon = self.repo.get_active_by_code(normalized) if normalized else None
        if coupon is None:
            return self._reject(normalized, CouponRejection.NOT_FOUND)

        rejection = check_coupon(coupon, subtotal, now=now or store_now(self.tz), tz=self.tz)
        if rejection is None and customer_id and self.repo.has_customer_use(coupon.id, customer_id):
            rejection = CouponRejection.ALREADY_USED
        if rejection is not None:
            return self._reject(normalized, rejection, minimum_order_value=coupon.minimum_order_value)

        applied = AppliedCoupon.from_model(coupon)
        return CouponEvaluation(
            coupon=applied,
            discount_amount=resolve_discount(subtotal, CouponSelection(applied)),
            minimum_order_value=coupon.minimum_order_value,
        )

    def _reject(self, code: str, rejection: CouponRejection, *, minimum_order_value=None) -> CouponEvaluation:
        metrics.increment_coupon_rejection(rejection.value)
        log_json(logger, {"event": "coupon_rejected", "code": code, "reason": rejection.value})
        return CouponEvaluation(
            coupon=None,
            discount_amount=ZERO,
            rejection=rejection,
            minimum_order_value=to_money(minimum_order_value) if minimum_order_value is not None else None,
        )
