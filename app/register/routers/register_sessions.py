from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from app.register.core.config import settings
from app.register.core.error_catalog import AppError, ErrorCatalog
from app.register.core.money import money_or_none, to_money
from app.register.core.time_windows import resolve_time_window
from app.register.db.models import RegisterSession
from app.register.db.session import get_db
from app.register.repos.register_sessions import RegisterSessionQueryFilters, RegisterSessionRepository
from app.register.schemas.register_sessions import (
    PaymentMethodTotalResponse,
    RegisterSessionActionRequest,
    RegisterSessionActionResponse,
    RegisterSessionCurrentResponse,
    RegisterSessionListResponse,
    RegisterSessionResponse,
    RegisterSessionSummaryResponse,
)
from app.register.services.audit import AuditEventPayload, AuditService
from app.register.services.idempotency import begin_idempotent_request
from app.register.services.register_sessions import RegisterSessionService, difference_type


router = APIRouter()


def _session_response(session: RegisterSession) -> RegisterSessionResponse:
    return RegisterSessionResponse(
        id=str(session.id),
        operator_id=session.operator_id,
        status=session.status,
        initial_fund=to_money(session.initial_fund),
        opened_at=session.opened_at,
        closed_at=session.closed_at,
        expected_balance=money_or_none(session.expected_balance),
        actual_balance=money_or_none(session.actual_balance),
        difference=money_or_none(session.difference),
        difference_type=difference_type(money_or_none(session.difference)),
        notes=session.notes,
    )


def _replay_response(replay) -> JSONResponse:
    return JSONResponse(
        status_code=replay.status_code,
        content=replay.response_body,
        headers={"X-Idempotency-Result": ErrorCatalog.IDEMPOTENCY_REPLAY.code},
    )


@router.get("/register/sessions/current", response_model=RegisterSessionCurrentResponse)
def get_current_session(db=Depends(get_db)):
    summary = RegisterSessionService(db).current_session_summary()
    if summary is None:
        return RegisterSessionCurrentResponse(summary=None)
    return RegisterSessionCurrentResponse(
        summary=RegisterSessionSummaryResponse(
            session=_session_response(summary.session),
            cash_total=summary.cash_total,
            expected_balance=summary.expected_balance,
            transaction_count=summary.transaction_count,
            by_payment_method=[
                PaymentMethodTotalResponse(
                    payment_method=row.payment_method,
                    total=row.total,
                    transaction_count=row.transaction_count,
                )
                for row in summary.by_payment_method
            ],
        )
    )


@router.get("/register/sessions", response_model=RegisterSessionListResponse)
def list_sessions(
    status: str | None = None,
    from_ts: str | None = None,
    to_ts: str | None = None,
    limit: int = 100,
    offset: int = 0,
    db=Depends(get_db),
):
    window = resolve_time_window(from_ts, to_ts)
    filters = RegisterSessionQueryFilters(
        status=status,
        opened_from=window.start_utc,
        opened_to=window.end_utc,
        limit=max(1, min(limit, settings.LIST_MAX_PAGE_SIZE)),
        offset=max(0, offset),
    )
    rows, total = RegisterSessionRepository(db).list_sessions(filters)
    return RegisterSessionListResponse(rows=[_session_response(row) for row in rows], total=total)


@router.get("/register/sessions/{session_id}", response_model=RegisterSessionResponse)
def get_session(session_id: UUID, db=Depends(get_db)):
    session = RegisterSessionRepository(db).get_by_id(session_id)
    if session is None:
        raise AppError(ErrorCatalog.NOT_FOUND, details={"message": "register session not found"})
    return _session_response(session)


@router.post("/register/sessions/actions", response_model=RegisterSessionActionResponse)
def register_session_action(request: Request, payload: RegisterSessionActionRequest, db=Depends(get_db)):
    replay = begin_idempotent_request(request, db, payload.model_dump(mode="json"))
    if replay:
        return _replay_response(replay)
    context = request.state.idempotency

    service = RegisterSessionService(db)
    trace_id = getattr(request.state, "trace_id", None)

    if payload.action == "OPEN":
        if payload.initial_fund is None:
            raise AppError(ErrorCatalog.VALIDATION_ERROR, details={"message": "initial_fund is required"})
        session = service.open_session(
            operator_id=payload.operator_id,
            initial_fund=payload.initial_fund,
            notes=payload.notes,
        )
        response = RegisterSessionActionResponse(**_session_response(session).model_dump())
        context.record_success(status_code=200, response_body=response.model_dump(mode="json"))
        AuditService(db).record_event(
            AuditEventPayload(
                actor=payload.operator_id,
                action="register_session.open",
                entity_type="register_session",
                entity_id=str(session.id),
                trace_id=trace_id,
                before=None,
                after={"status": session.status, "initial_fund": str(response.initial_fund)},
            )
        )
        return response

    reconciliation = service.close_session(actual_balance=payload.actual_balance, notes=payload.notes)
    session = reconciliation.session
    response = RegisterSessionActionResponse(
        **_session_response(session).model_dump(),
        cash_total=reconciliation.cash_total,
    )
    context.record_success(status_code=200, response_body=response.model_dump(mode="json"))
    AuditService(db).record_event(
        AuditEventPayload(
            actor=payload.operator_id,
            action="register_session.close",
            entity_type="register_session",
            entity_id=str(session.id),
            trace_id=trace_id,
            before={"status": "OPEN"},
            after={
                "status": session.status,
                "cash_total": str(reconciliation.cash_total),
                "expected_balance": str(reconciliation.expected_balance),
                "actual_balance": str(reconciliation.actual_balance),
                "difference": str(reconciliation.difference),
                "difference_type": reconciliation.difference_type,
            },
        )
    )
    return response
