from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field


class RegisterSessionActionRequest(BaseModel):
    action: Literal["OPEN", "CLOSE"]
    operator_id: str = Field(min_length=1, max_length=64)
    initial_fund: Decimal | None = None
    actual_balance: Decimal | None = None
    notes: str | None = Field(default=None, max_length=255)


class RegisterSessionResponse(BaseModel):
    id: str
    operator_id: str
    status: str
    initial_fund: Decimal
    opened_at: datetime
    closed_at: datetime | None
    expected_balance: Decimal | None
    actual_balance: Decimal | None
    difference: Decimal | None
    difference_type: str | None
    notes: str | None


class RegisterSessionActionResponse(RegisterSessionResponse):
    cash_total: Decimal | None = None


class PaymentMethodTotalResponse(BaseModel):
    payment_method: str
    total: Decimal
    transaction_count: int


class RegisterSessionSummaryResponse(BaseModel):
    session: RegisterSessionResponse
    cash_total: Decimal
    expected_balance: Decimal
    transaction_count: int
    by_payment_method: list[PaymentMethodTotalResponse]


class RegisterSessionCurrentResponse(BaseModel):
    summary: RegisterSessionSummaryResponse | None


class RegisterSessionListResponse(BaseModel):
    rows: list[RegisterSessionResponse]
    total: int
