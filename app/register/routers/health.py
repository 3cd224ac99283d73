from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.register.core.config import settings
from app.register.core.error_catalog import ErrorCatalog
from app.register.core.errors import error_response
from app.register.db.session import get_db
from app.register.repos.register_sessions import RegisterSessionRepository

router = APIRouter()


def _trace_id(request: Request) -> str:
    return getattr(request.state, "trace_id", "")


@router.get("/health")
async def health(request: Request):
    return {"status": "ok", "service": settings.APP_NAME, "trace_id": _trace_id(request)}


@router.get("/ready")
def ready(request: Request, db=Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
        open_session = RegisterSessionRepository(db).get_open()
    except SQLAlchemyError as exc:
        return error_response(
            code=ErrorCatalog.DB_UNAVAILABLE.code,
            message=ErrorCatalog.DB_UNAVAILABLE.message,
            details={"message": exc.__class__.__name__},
            trace_id=_trace_id(request),
            status_code=ErrorCatalog.DB_UNAVAILABLE.status_code,
        )
    return {
        "status": "ready",
        "database": db.get_bind().dialect.name,
        "register": "OPEN" if open_session is not None else "CLOSED",
        "trace_id": _trace_id(request),
    }
