from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, Field


class CouponValidateRequest(BaseModel):
    code: str
    subtotal: Decimal = Field(ge=0)
    customer_id: str | None = Field(default=None, max_length=64)


class CouponSummary(BaseModel):
    code: str
    discount_type: str
    discount_value: Decimal


class CouponValidateResponse(BaseModel):
    valid: bool
    reason: str | None
    coupon: CouponSummary | None
    minimum_order_value: Decimal | None
    subtotal: Decimal
    discount_amount: Decimal
    total: Decimal
