from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

PaymentMethod = Literal["cash", "card", "pix"]


class CartLineRequest(BaseModel):
    kind: Literal["product", "ticket"]
    item_id: UUID
    quantity: int = Field(default=1, ge=1)


class DiscountRequest(BaseModel):
    kind: Literal["NONE", "MANUAL_PERCENT", "MANUAL_FIXED", "COUPON"]
    value: Decimal | None = Field(default=None, ge=0)
    coupon_code: str | None = None

    @model_validator(mode="after")
    def _check_branch(self):
        if self.kind in ("MANUAL_PERCENT", "MANUAL_FIXED") and self.value is None:
            raise ValueError("value is required for manual discounts")
        if self.kind == "COUPON" and not (self.coupon_code or "").strip():
            raise ValueError("coupon_code is required for coupon discounts")
        return self


class CartRequest(BaseModel):
    lines: list[CartLineRequest]
    discount: DiscountRequest | None = None
    payment_method: PaymentMethod | None = None
    amount_paid: Decimal | None = Field(default=None, ge=0)
    customer_id: str | None = Field(default=None, max_length=64)


class CheckoutRequest(CartRequest):
    operator_id: str = Field(min_length=1, max_length=64)


class CartQuoteLineResponse(BaseModel):
    kind: str
    item_id: str
    event_id: str | None
    name: str
    unit_price: Decimal
    quantity: int
    line_total: Decimal


class CartQuoteResponse(BaseModel):
    lines: list[CartQuoteLineResponse]
    discount_kind: str
    coupon_code: str | None
    subtotal: Decimal
    discount_amount: Decimal
    total: Decimal
    payment_method: str | None
    amount_paid: Decimal | None
    change_amount: Decimal


class TransactionLineResponse(BaseModel):
    position: int
    kind: str
    item_id: str
    event_id: str | None
    name: str
    unit_price: Decimal
    quantity: int
    line_total: Decimal


class TransactionResponse(BaseModel):
    id: str
    session_id: str
    operator_id: str
    customer_id: str | None
    lines: list[TransactionLineResponse]
    subtotal: Decimal
    discount_type: str | None
    discount_value: Decimal | None
    discount_amount: Decimal | None
    coupon_code: str | None
    total: Decimal
    payment_method: str
    amount_paid: Decimal | None
    change_amount: Decimal
    created_at: datetime


class TransactionListResponse(BaseModel):
    rows: list[TransactionResponse]
    total: int
