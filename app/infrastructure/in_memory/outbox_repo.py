import copy
from collections import Counter
from datetime import datetime
from typing import Sequence

from app.application.interfaces.outbox_repo import OutboxRepo
from app.domain.entities.outbox_event import OutboxEvent, OutboxStatus
from app.infrastructure.in_memory.store import InMemoryStore


class InMemoryOutboxRepo(OutboxRepo):
    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    async def enqueue(self, event: OutboxEvent) -> None:
        self._store.outbox[event.event_id] = copy.deepcopy(event)

    async def get(self, event_id: str) -> OutboxEvent | None:
        event = self._store.outbox.get(event_id)
        return copy.deepcopy(event) if event else None

    async def claim_due(
        self,
        now: datetime,
        limit: int,
        locked_by: str,
    ) -> Sequence[OutboxEvent]:
        events = list(self._store.outbox.values())
        due = sorted(
            (
                event
                for event in events
                if event.is_due(now) and not any(other.holds_back(event, now) for other in events)
            ),
            key=lambda event: event.created_at or now,
        )
        claimed = []
        for event in due[:limit]:
            event.claim(locked_by, now)
            claimed.append(copy.deepcopy(event))
        return claimed

    def _owned(self, event_id: str, locked_by: str) -> OutboxEvent | None:
        event = self._store.outbox.get(event_id)
        if event is None or event.status != OutboxStatus.PROCESSING or event.locked_by != locked_by:
            return None
        return event

    async def mark_completed(self, event_id: str, locked_by: str, now: datetime) -> bool:
        event = self._owned(event_id, locked_by)
        if event is None:
            return False
        event.mark_completed(now)
        return True

    async def defer(self, event_id: str, locked_by: str, now: datetime) -> bool:
        event = self._owned(event_id, locked_by)
        if event is None:
            return False
        event.defer(now)
        return True

    async def mark_retry(
        self,
        event_id: str,
        locked_by: str,
        retry_count: int,
        next_retry_at: datetime,
        error_message: str | None,
        now: datetime,
    ) -> bool:
        event = self._owned(event_id, locked_by)
        if event is None:
            return False
        event.status = OutboxStatus.PENDING
        event.retry_count = retry_count
        event.next_retry_at = next_retry_at
        event.error_message = error_message
        event.updated_at = now
        event.release_lock()
        return True

    async def mark_failed(
        self,
        event_id: str,
        locked_by: str,
        retry_count: int,
        error_message: str | None,
        now: datetime,
    ) -> bool:
        event = self._owned(event_id, locked_by)
        if event is None:
            return False
        event.status = OutboxStatus.FAILED
        event.retry_count = retry_count
        event.error_message = error_message
        event.updated_at = now
        event.release_lock()
        return True

    async def reclaim_stuck(self, locked_before: datetime, now: datetime) -> int:
        stuck = [
            event
            for event in self._store.outbox.values()
            if event.status == OutboxStatus.PROCESSING
            and event.locked_at is not None
            and event.locked_at < locked_before
        ]
        for event in stuck:
            event.reclaim(now)
        return len(stuck)

    async def reset_failed(self, event_id: str, now: datetime) -> bool:
        event = self._store.outbox.get(event_id)
        if event is None or event.status != OutboxStatus.FAILED:
            return False
        event.reset_for_retry(now)
        return True

    async def count_by_status(self) -> dict[OutboxStatus, int]:
        return dict(Counter(event.status for event in self._store.outbox.values()))

    async def list_by_status(self, status: OutboxStatus, limit: int) -> Sequence[OutboxEvent]:
        events = [event for event in self._store.outbox.values() if event.status == status]
        events.sort(key=lambda event: event.updated_at or event.created_at)
        return [copy.deepcopy(event) for event in events[:limit]]

    async def list_by_aggregate(self, aggregate_id: str) -> Sequence[OutboxEvent]:
        events = [event for event in self._store.outbox.values() if event.aggregate_id == aggregate_id]
        events.sort(key=lambda event: event.created_at)
        return [copy.deepcopy(event) for event in events]

    async def delete_completed_before(self, cutoff: datetime) -> int:
        doomed = [
            event.event_id
            for event in self._store.outbox.values()
            if event.status == OutboxStatus.COMPLETED
            and event.processed_at is not None
            and event.processed_at < cutoff
        ]
        for event_id in doomed:
            del self._store.outbox[event_id]
        return len(doomed)
