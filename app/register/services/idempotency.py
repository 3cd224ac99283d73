import hashlib
import json
import logging
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError

from app.register.core.error_catalog import AppError, ErrorCatalog
from app.register.core.metrics import metrics
from app.register.db.models import IdempotencyRecord
from app.register.repos.idempotency import IdempotencyRepository


logger = logging.getLogger(__name__)

IDEMPOTENCY_HEADER = "Idempotency-Key"
IN_PROGRESS = "in_progress"
SUCCEEDED = "succeeded"
FAILED = "failed"


@dataclass
class IdempotencyReplay:
    status_code: int
    response_body: dict


class IdempotencyContext:
    """Handle on the pending record of one mutating request."""

    def __init__(self, record_id, repo: IdempotencyRepository):
        self.record_id = record_id
        self._repo = repo

    def _finish(self, state: str, status_code: int, response_body: dict) -> None:
        completed = self._repo.complete(
            self.record_id,
            from_state=IN_PROGRESS,
            state=state,
            status_code=status_code,
            response_body=json.dumps(response_body, default=str),
        )
        if not completed:
            logger.warning("idempotency record %s was already completed", self.record_id)

    def record_success(self, *, status_code: int, response_body: dict) -> None:
        self._finish(SUCCEEDED, status_code, response_body)

    def record_failure(self, *, status_code: int, response_body: dict) -> None:
        self._finish(FAILED, status_code, response_body)


class IdempotencyService:
    def __init__(self, db):
        self.repo = IdempotencyRepository(db)

    @staticmethod
    def fingerprint(payload: object) -> str:
        payload_bytes = json.dumps(payload, sort_keys=True, default=str).encode("utf-8")
        return hashlib.sha256(payload_bytes).hexdigest()

    def start(
        self,
        *,
        endpoint: str,
        method: str,
        idempotency_key: str,
        request_hash: str,
    ) -> tuple[IdempotencyContext | None, IdempotencyReplay | None]:
        lookup = {"endpoint": endpoint, "method": method, "idempotency_key": idempotency_key}
        existing = self.repo.find(**lookup)
        if existing:
            return self._handle_existing(existing, request_hash)

        try:
            record = self.repo.claim(**lookup, request_hash=request_hash, state=IN_PROGRESS)
        except IntegrityError:
            # a concurrent request with the same key won the insert
            self.repo.db.rollback()
            return self._handle_existing(self.repo.find(**lookup), request_hash)

        return IdempotencyContext(record.id, self.repo), None

    def _handle_existing(
        self, existing: IdempotencyRecord | None, request_hash: str
    ) -> tuple[IdempotencyContext | None, IdempotencyReplay | None]:
        if existing is None:
            raise AppError(ErrorCatalog.IDEMPOTENCY_REQUEST_IN_PROGRESS)
        if existing.request_hash != request_hash:
            raise AppError(ErrorCatalog.IDEMPOTENCY_KEY_REUSED_WITH_DIFFERENT_PAYLOAD)
        if existing.state == IN_PROGRESS or existing.response_body is None or existing.status_code is None:
            raise AppError(ErrorCatalog.IDEMPOTENCY_REQUEST_IN_PROGRESS)
        metrics.increment_idempotency_replay()
        return None, IdempotencyReplay(status_code=existing.status_code, response_body=json.loads(existing.response_body))


def extract_idempotency_key(headers, *, required: bool) -> str | None:
    key = headers.get(IDEMPOTENCY_HEADER)
    if not key and required:
        raise AppError(ErrorCatalog.IDEMPOTENCY_KEY_REQUIRED)
    return key


def begin_idempotent_request(request, db, payload: dict) -> IdempotencyReplay | None:
    idempotency_key = extract_idempotency_key(request.headers, required=True)
    context, replay = IdempotencyService(db).start(
        endpoint=str(request.url.path),
        method=request.method,
        idempotency_key=idempotency_key,
        request_hash=IdempotencyService.fingerprint(payload),
    )
    if replay is None:
        request.state.idempotency = context
    return replay
