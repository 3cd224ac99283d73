from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.orm import selectinload

from app.register.db.models import RegisterTransaction


@dataclass(frozen=True)
class RegisterTransactionQueryFilters:
    session_id: object | None = None
    payment_method: str | None = None
    created_from: datetime | None = None
    created_to: datetime | None = None
    limit: int = 100
    offset: int = 0


class RegisterTransactionRepository:
    def __init__(self, db):
        self.db = db

    def get_by_id(self, transaction_id) -> RegisterTransaction | None:
        query = (
            select(RegisterTransaction)
            .where(RegisterTransaction.id == transaction_id)
            .options(selectinload(RegisterTransaction.lines))
        )
        return self.db.execute(query).scalars().first()

    def list_transactions(self, filters: RegisterTransactionQueryFilters) -> tuple[list[RegisterTransaction], int]:
        conditions = []
        if filters.session_id:
            conditions.append(RegisterTransaction.session_id == filters.session_id)
        if filters.payment_method:
            conditions.append(RegisterTransaction.payment_method == filters.payment_method)
        if filters.created_from:
            conditions.append(RegisterTransaction.created_at >= filters.created_from)
        if filters.created_to:
            conditions.append(RegisterTransaction.created_at <= filters.created_to)
        count_query = select(func.count()).select_from(RegisterTransaction).where(*conditions)
        total = self.db.execute(count_query).scalar_one()
        query = (
            select(RegisterTransaction)
            .where(*conditions)
            .options(selectinload(RegisterTransaction.lines))
            .order_by(RegisterTransaction.created_at.desc())
            .limit(filters.limit)
            .offset(filters.offset)
        )
        return self.db.execute(query).scalars().all(), total

    def cash_total(self, session_id):
        query = select(func.coalesce(func.sum(RegisterTransaction.total), 0)).where(
            RegisterTransaction.session_id == session_id,
            RegisterTransaction.payment_method == "cash",
        )
        return self.db.execute(query).scalar_one()
