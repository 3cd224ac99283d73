from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from app.register.core.config import settings
from app.register.core.error_catalog import AppError, ErrorCatalog
from app.register.core.money import money_or_none, to_money
from app.register.core.time_windows import resolve_time_window
from app.register.db.models import RegisterTransaction
from app.register.db.session import get_db
from app.register.repos.register_transactions import (
    RegisterTransactionQueryFilters,
    RegisterTransactionRepository,
)
from app.register.schemas.register_transactions import (
    CheckoutRequest,
    TransactionLineResponse,
    TransactionListResponse,
    TransactionResponse,
)
from app.register.services.audit import AuditEventPayload, AuditService
from app.register.services.cart_loader import load_cart
from app.register.services.checkout import CheckoutService
from app.register.services.idempotency import begin_idempotent_request


router = APIRouter()


def _transaction_response(transaction: RegisterTransaction) -> TransactionResponse:
    return TransactionResponse(
        id=str(transaction.id),
        session_id=str(transaction.session_id),
        operator_id=transaction.operator_id,
        customer_id=transaction.customer_id,
        lines=[
            TransactionLineResponse(
                position=line.position,
                kind=line.kind,
                item_id=str(line.item_id),
                event_id=str(line.event_id) if line.event_id else None,
                name=line.name,
                unit_price=to_money(line.unit_price),
                quantity=line.quantity,
                line_total=to_money(line.line_total),
            )
            for line in transaction.lines
        ],
        subtotal=to_money(transaction.subtotal),
        discount_type=transaction.discount_type,
        discount_value=money_or_none(transaction.discount_value),
        discount_amount=money_or_none(transaction.discount_amount),
        coupon_code=transaction.coupon_code,
        total=to_money(transaction.total),
        payment_method=transaction.payment_method,
        amount_paid=money_or_none(transaction.amount_paid),
        change_amount=to_money(transaction.change_amount),
        created_at=transaction.created_at,
    )


@router.post("/register/transactions", status_code=201, response_model=TransactionResponse)
def create_transaction(request: Request, payload: CheckoutRequest, db=Depends(get_db)):
    replay = begin_idempotent_request(request, db, payload.model_dump(mode="json"))
    if replay:
        return JSONResponse(
            status_code=replay.status_code,
            content=replay.response_body,
            headers={"X-Idempotency-Result": ErrorCatalog.IDEMPOTENCY_REPLAY.code},
        )
    context = request.state.idempotency

    cart = load_cart(db, payload.lines, payload.discount, customer_id=payload.customer_id)
    result = CheckoutService(db).commit(
        cart,
        operator_id=payload.operator_id,
        payment_method=payload.payment_method,
        amount_paid=payload.amount_paid,
        customer_id=payload.customer_id,
    )
    transaction = result.transaction
    response = _transaction_response(transaction)
    context.record_success(status_code=201, response_body=response.model_dump(mode="json"))
    AuditService(db).record_event(
        AuditEventPayload(
            actor=payload.operator_id,
            action="register_transaction.create",
            entity_type="register_transaction",
            entity_id=str(transaction.id),
            trace_id=getattr(request.state, "trace_id", None),
            before=None,
            after={
                "session_id": str(transaction.session_id),
                "payment_method": transaction.payment_method,
                "total": str(response.total),
                "discount_type": transaction.discount_type,
                "coupon_code": transaction.coupon_code,
                "line_count": len(response.lines),
            },
        )
    )
    return response


@router.get("/register/transactions", response_model=TransactionListResponse)
def list_transactions(
    session_id: UUID | None = None,
    payment_method: str | None = None,
    from_ts: str | None = None,
    to_ts: str | None = None,
    limit: int = 100,
    offset: int = 0,
    db=Depends(get_db),
):
    window = resolve_time_window(from_ts, to_ts)
    filters = RegisterTransactionQueryFilters(
        session_id=session_id,
        payment_method=payment_method,
        created_from=window.start_utc,
        created_to=window.end_utc,
        limit=max(1, min(limit, settings.LIST_MAX_PAGE_SIZE)),
        offset=max(0, offset),
    )
    rows, total = RegisterTransactionRepository(db).list_transactions(filters)
    return TransactionListResponse(rows=[_transaction_response(row) for row in rows], total=total)


@router.get("/register/transactions/{transaction_id}", response_model=TransactionResponse)
def get_transaction(transaction_id: UUID, db=Depends(get_db)):
    transaction = RegisterTransactionRepository(db).get_by_id(transaction_id)
    if transaction is None:
        raise AppError(ErrorCatalog.NOT_FOUND, details={"message": "register transaction not found"})
    return _transaction_response(transaction)
