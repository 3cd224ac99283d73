from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from sqlalchemy.exc import IntegrityError

from app.register.core.error_catalog import AppError, ErrorCatalog
from app.register.core.logging import log_json
from app.register.core.money import ZERO, to_money
from app.register.db.models import RegisterSession
from app.register.repos.register_sessions import OPEN, RegisterSessionRepository
from app.register.repos.register_transactions import RegisterTransactionRepository
from app.register.services.cart import PAYMENT_METHODS

logger = logging.getLogger(__name__)

EXACT = "EXACT"
OVERAGE = "OVERAGE"
SHORTAGE = "SHORTAGE"


def difference_type(difference: Decimal | None) -> str | None:
    if difference is None:
        return None
    if difference > 0:
        return OVERAGE
    if difference < 0:
        return SHORTAGE
    return EXACT


@dataclass(frozen=True)
class PaymentMethodTotal:
    payment_method: str
    total: Decimal
    transaction_count: int


@dataclass(frozen=True)
class SessionSummary:
    session: RegisterSession
    cash_total: Decimal
    expected_balance: Decimal
    transaction_count: int
    by_payment_method: list[PaymentMethodTotal] = field(default_factory=list)


@dataclass(frozen=True)
class Reconciliation:
    session: RegisterSession
    cash_total: Decimal
    expected_balance: Decimal
    actual_balance: Decimal
    difference: Decimal

    @property
    def difference_type(self) -> str:
        return difference_type(self.difference)


class RegisterSessionService:
    """Open/close lifecycle of the single register session."""

    def __init__(self, db):
        self.db = db
        self.repo = RegisterSessionRepository(db)
        self.transactions = RegisterTransactionRepository(db)

    def current_session(self) -> RegisterSession | None:
        return self.repo.get_open()

    def require_open_session(self, *, for_update: bool = False) -> RegisterSession:
        session = self.repo.get_open(for_update=for_update)
        if session is None:
            raise AppError(ErrorCatalog.SESSION_NOT_OPEN)
        return session

    def open_session(self, *, operator_id: str, initial_fund, notes: str | None = None) -> RegisterSession:
        if not operator_id:
            raise AppError(ErrorCatalog.VALIDATION_ERROR, details={"message": "operator_id is required"})
        fund = to_money(initial_fund)
        if fund < 0:
            raise AppError(ErrorCatalog.VALIDATION_ERROR, details={"message": "initial_fund must be >= 0"})

        existing = self.repo.get_open(for_update=True)
        if existing is not None:
            raise AppError(ErrorCatalog.SESSION_ALREADY_OPEN, details={"session_id": str(existing.id)})

        session = RegisterSession(
            operator_id=operator_id,
            initial_fund=fund,
            status=OPEN,
            opened_at=datetime.utcnow(),
            notes=notes,
        )
        self.db.add(session)
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise AppError(ErrorCatalog.SESSION_ALREADY_OPEN) from exc

        log_json(
            logger,
            {
                "event": "register_session_opened",
                "session_id": str(session.id),
                "operator_id": operator_id,
                "initial_fund": str(fund),
            },
        )
        return session

    def cash_total(self, session: RegisterSession) -> Decimal:
        return to_money(self.transactions.cash_total(session.id))

    def current_session_summary(self) -> SessionSummary | None:
        session = self.current_session()
        if session is None:
            return None
        totals = self.repo.totals_by_payment_method(session.id)
        by_method = [
            PaymentMethodTotal(
                payment_method=method,
                total=to_money(totals.get(method, (ZERO, 0))[0]),
                transaction_count=totals.get(method, (ZERO, 0))[1],
            )
            for method in PAYMENT_METHODS
        ]
        cash_total = next(row.total for row in by_method if row.payment_method == "cash")
        return SessionSummary(
            session=session,
            cash_total=cash_total,
            expected_balance=to_money(session.initial_fund) + cash_total,
            transaction_count=sum(row.transaction_count for row in by_method),
            by_payment_method=by_method,
        )

    def close_session(self, *, actual_balance, notes: str | None = None) -> Reconciliation:
        if actual_balance is None:
            raise AppError(ErrorCatalog.VALIDATION_ERROR, details={"message": "actual_balance is required"})
        actual = to_money(actual_balance)
        if actual < 0:
            raise AppError(ErrorCatalog.VALIDATION_ERROR, details={"message": "actual_balance must be >= 0"})

        session = self.require_open_session(for_update=True)
        cash_total = self.cash_total(session)
        expected = to_money(session.initial_fund) + cash_total
        difference = actual - expected

        updated = self.repo.mark_closed(
            session.id,
            closed_at=datetime.utcnow(),
            expected_balance=expected,
            actual_balance=actual,
            difference=difference,
            notes=notes,
        )
        if updated == 0:
            # another terminal closed it between the read and the guarded update
            self.db.rollback()
            raise AppError(ErrorCatalog.SESSION_NOT_OPEN)
        self.db.commit()
        self.db.refresh(session)

        reconciliation = Reconciliation(
            session=session,
            cash_total=cash_total,
            expected_balance=expected,
            actual_balance=actual,
            difference=difference,
        )
        log_json(
            logger,
            {
                "event": "register_session_closed",
                "session_id": str(session.id),
                "expected_balance": str(expected),
                "actual_balance": str(actual),
                "difference": str(difference),
                "difference_type": reconciliation.difference_type,
            },
            level=logging.INFO if difference == 0 else logging.WARNING,
        )
        return reconciliation
