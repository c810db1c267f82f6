import copy
from datetime import datetime

from app.application.interfaces.idempotency_repo import IdempotencyRepo
from app.domain.entities.idempotency_record import IdempotencyRecord, IdempotencyStatus
from app.infrastructure.in_memory.store import InMemoryStore


class InMemoryIdempotencyRepo(IdempotencyRepo):
    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    async def insert_if_absent(self, record: IdempotencyRecord) -> IdempotencyRecord | None:
        existing = self._store.idempotency.get(record.key)
        if existing is not None:
            return copy.deepcopy(existing)
        self._store.idempotency[record.key] = copy.deepcopy(record)
        return None

    async def get(self, key: str) -> IdempotencyRecord | None:
        record = self._store.idempotency.get(key)
        return copy.deepcopy(record) if record else None

    async def mark_completed(self, key: str, reservation_id: str) -> None:
        record = self._store.idempotency.get(key)
        if record is None:
            return
        record.status = IdempotencyStatus.COMPLETED
        record.reservation_id = reservation_id

    async def delete(self, key: str) -> None:
        self._store.idempotency.pop(key, None)

    async def delete_if_expired(self, key: str, now: datetime) -> bool:
        record = self._store.idempotency.get(key)
        if record is None or not record.is_expired(now):
            return False
        del self._store.idempotency[key]
        return True

    async def delete_expired(self, now: datetime) -> int:
        expired = [key for key, record in self._store.idempotency.items() if record.is_expired(now)]
        for key in expired:
            del self._store.idempotency[key]
        return len(expired)
