from __future__ import annotations

from fastapi import APIRouter, Depends

from app.register.core.money import to_money
from app.register.db.session import get_db
from app.register.schemas.coupons import CouponSummary, CouponValidateRequest, CouponValidateResponse
from app.register.services.coupons import CouponEvaluator
from app.register.services.discounts import resolve_total

router = APIRouter()


@router.post("/register/coupons/validate", response_model=CouponValidateResponse)
def validate_coupon(payload: CouponValidateRequest, db=Depends(get_db)):
    subtotal = to_money(payload.subtotal)
    evaluation = CouponEvaluator(db).evaluate(payload.code, subtotal, customer_id=payload.customer_id)
    coupon = evaluation.coupon
    return CouponValidateResponse(
        valid=evaluation.valid,
        reason=evaluation.rejection.value if evaluation.rejection else None,
        coupon=CouponSummary(
            code=coupon.code,
            discount_type=coupon.discount_type,
            discount_value=coupon.discount_value,
        )
        if coupon
        else None,
        minimum_order_value=evaluation.minimum_order_value,
        subtotal=subtotal,
        discount_amount=evaluation.discount_amount,
        total=resolve_total(subtotal, evaluation.discount_amount),
    )
