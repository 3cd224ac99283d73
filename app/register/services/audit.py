import logging
from dataclasses import dataclass
from datetime import datetime

from app.register.db.models import AuditEvent
from app.register.repos.audit import AuditRepository

logger = logging.getLogger(__name__)


@dataclass
class AuditEventPayload:
    actor: str
    action: str
    entity_type: str
    entity_id: str | None
    trace_id: str | None
    before: dict | None
    after: dict | None
    metadata: dict | None = None
    result: str = "success"


class AuditService:
    """Best-effort audit trail; a failed write is logged, never raised."""

    def __init__(self, db):
        self.db = db
        self.repo = AuditRepository(db)

    def record_event(self, payload: AuditEventPayload) -> None:
        try:
            self.repo.create(
                AuditEvent(
                    actor=payload.actor,
                    action=payload.action,
                    entity_type=payload.entity_type,
                    entity_id=payload.entity_id,
                    trace_id=payload.trace_id,
                    before_payload=payload.before,
                    after_payload=payload.after,
                    event_metadata=payload.metadata,
                    result=payload.result,
                    created_at=datetime.utcnow(),
                )
            )
        except Exception:
            self.db.rollback()
            logger.exception(
                "Failed to write audit event",
                extra={"action": payload.action, "trace_id": payload.trace_id, "entity_id": payload.entity_id},
            )
