from datetime import date, datetime, timezone
from decimal import Decimal
from types import SimpleNamespace
from zoneinfo import ZoneInfo

from app.register.services.coupons import CouponEvaluator, CouponRejection, check_coupon
from tests.register_helpers import create_coupon

BAHIA = ZoneInfo("America/Bahia")
NOW = datetime(2026, 3, 10, 12, 0, tzinfo=BAHIA)


def _coupon(**overrides):
    values = {
        "valid_from": None,
        "valid_until": None,
        "max_uses": None,
        "current_uses": 0,
        "minimum_order_value": None,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def test_valid_coupon_has_no_rejection():
    assert check_coupon(_coupon(), Decimal("10"), now=NOW, tz=BAHIA) is None


def test_expired_yesterday():
    coupon = _coupon(valid_until=date(2026, 3, 9))
    assert check_coupon(coupon, Decimal("10"), now=NOW, tz=BAHIA) == CouponRejection.EXPIRED


def test_valid_through_last_day_in_store_time():
    coupon = _coupon(valid_until=date(2026, 3, 9))
    # 01:30 UTC on the 10th is still the 9th in the store
    late_evening = datetime(2026, 3, 10, 1, 30, tzinfo=timezone.utc)
    assert check_coupon(coupon, Decimal("10"), now=late_evening, tz=BAHIA) is None


def test_not_yet_valid():
    coupon = _coupon(valid_from=date(2026, 3, 11))
    assert check_coupon(coupon, Decimal("10"), now=NOW, tz=BAHIA) == CouponRejection.NOT_YET_VALID


def test_uses_exhausted():
    coupon = _coupon(max_uses=3, current_uses=3)
    assert check_coupon(coupon, Decimal("10"), now=NOW, tz=BAHIA) == CouponRejection.USES_EXHAUSTED


def test_below_minimum():
    coupon = _coupon(minimum_order_value=Decimal("100"))
    assert check_coupon(coupon, Decimal("99.99"), now=NOW, tz=BAHIA) == CouponRejection.BELOW_MINIMUM
    assert check_coupon(coupon, Decimal("100.00"), now=NOW, tz=BAHIA) is None


def test_expiry_checked_before_usage():
    coupon = _coupon(valid_until=date(2026, 3, 1), max_uses=1, current_uses=1)
    assert check_coupon(coupon, Decimal("10"), now=NOW, tz=BAHIA) == CouponRejection.EXPIRED


def test_evaluator_normalizes_code_and_leaves_usage_alone(db_session):
    coupon = create_coupon(db_session, code="PROMO10", discount_value="10", max_uses=5)
    evaluator = CouponEvaluator(db_session, tz=BAHIA)

    first = evaluator.evaluate("  promo10 ", Decimal("80.00"), now=NOW)
    second = evaluator.evaluate("PROMO10", Decimal("80.00"), now=NOW)

    assert first.valid and second.valid
    assert first.discount_amount == Decimal("8.00")
    assert first.coupon.code == "PROMO10"
    db_session.refresh(coupon)
    assert coupon.current_uses == 0


def test_evaluator_unknown_and_inactive_codes(db_session):
    create_coupon(db_session, code="OLD", is_active=False)
    evaluator = CouponEvaluator(db_session, tz=BAHIA)

    assert evaluator.evaluate("NOPE", Decimal("10"), now=NOW).rejection == CouponRejection.NOT_FOUND
    assert evaluator.evaluate("OLD", Decimal("10"), now=NOW).rejection == CouponRejection.NOT_FOUND
    assert evaluator.evaluate("", Decimal("10"), now=NOW).rejection == CouponRejection.NOT_FOUND


def test_evaluator_reports_minimum(db_session):
    create_coupon(db_session, code="BIG", discount_type="fixed", discount_value="20", minimum_order_value="150")
    result = CouponEvaluator(db_session, tz=BAHIA).evaluate("BIG", Decimal("100"), now=NOW)
    assert result.rejection == CouponRejection.BELOW_MINIMUM
    assert result.minimum_order_value == Decimal("150.00")
    assert result.discount_amount == Decimal("0.00")
