from datetime import datetime

from sqlalchemy import select, update

from app.register.db.models import IdempotencyRecord


class IdempotencyRepository:
    def __init__(self, db):
        self.db = db

    @staticmethod
    def _key_clause(endpoint: str, method: str, idempotency_key: str):
        return (
            IdempotencyRecord.endpoint == endpoint,
            IdempotencyRecord.method == method.upper(),
            IdempotencyRecord.idempotency_key == idempotency_key,
        )

    def find(self, *, endpoint: str, method: str, idempotency_key: str) -> IdempotencyRecord | None:
        stmt = select(IdempotencyRecord).where(*self._key_clause(endpoint, method, idempotency_key))
        return self.db.execute(stmt).scalars().first()

    def claim(self, *, endpoint: str, method: str, idempotency_key: str, request_hash: str, state: str) -> IdempotencyRecord:
        record = IdempotencyRecord(
            endpoint=endpoint,
            method=method.upper(),
            idempotency_key=idempotency_key,
            request_hash=request_hash,
            state=state,
        )
        self.db.add(record)
        self.db.commit()
        return record

    def complete(self, record_id, *, from_state: str, state: str, status_code: int, response_body: str) -> bool:
        result = self.db.execute(
            update(IdempotencyRecord)
            .where(IdempotencyRecord.id == record_id, IdempotencyRecord.state == from_state)
            .values(
                state=state,
                status_code=status_code,
                response_body=response_body,
                updated_at=datetime.utcnow(),
            )
        )
        self.db.commit()
        return result.rowcount == 1
