from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func, select, update

from app.register.db.models import RegisterSession, RegisterTransaction

OPEN = "OPEN"
CLOSED = "CLOSED"


@dataclass(frozen=True)
class RegisterSessionQueryFilters:
    status: str | None = None
    opened_from: datetime | None = None
    opened_to: datetime | None = None
    limit: int = 100
    offset: int = 0


class RegisterSessionRepository:
    def __init__(self, db):
        self.db = db

    def get_open(self, *, for_update: bool = False) -> RegisterSession | None:
        query = select(RegisterSession).where(RegisterSession.status == OPEN)
        if for_update:
            query = query.with_for_update()
        return self.db.execute(query).scalars().first()

    def get_by_id(self, session_id) -> RegisterSession | None:
        return self.db.execute(select(RegisterSession).where(RegisterSession.id == session_id)).scalars().first()

    def list_sessions(self, filters: RegisterSessionQueryFilters) -> tuple[list[RegisterSession], int]:
        conditions = []
        if filters.status:
            conditions.append(RegisterSession.status == filters.status.upper())
        if filters.opened_from:
            conditions.append(RegisterSession.opened_at >= filters.opened_from)
        if filters.opened_to:
            conditions.append(RegisterSession.opened_at <= filters.opened_to)
        query = select(RegisterSession).where(*conditions)
        count_query = select(func.count()).select_from(RegisterSession).where(*conditions)
        total = self.db.execute(count_query).scalar_one()
        rows = (
            self.db.execute(
                query.order_by(RegisterSession.opened_at.desc()).limit(filters.limit).offset(filters.offset)
            )
            .scalars()
            .all()
        )
        return rows, total

    def totals_by_payment_method(self, session_id) -> dict[str, tuple]:
        query = (
            select(
                RegisterTransaction.payment_method,
                func.coalesce(func.sum(RegisterTransaction.total), 0),
                func.count(RegisterTransaction.id),
            )
            .where(RegisterTransaction.session_id == session_id)
            .group_by(RegisterTransaction.payment_method)
        )
        return {method: (total, count) for method, total, count in self.db.execute(query).all()}

    def mark_closed(
        self,
        session_id,
        *,
        closed_at: datetime,
        expected_balance,
        actual_balance,
        difference,
        notes: str | None,
    ) -> int:
        values = {
            "status": CLOSED,
            "closed_at": closed_at,
            "expected_balance": expected_balance,
            "actual_balance": actual_balance,
            "difference": difference,
        }
        if notes is not None:
            values["notes"] = notes
        stmt = (
            update(RegisterSession)
            .where(RegisterSession.id == session_id, RegisterSession.status == OPEN)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return self.db.execute(stmt).rowcount
