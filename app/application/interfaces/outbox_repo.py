from datetime import datetime
from typing import Sequence

from app.domain.entities.outbox_event import OutboxEvent, OutboxStatus


class OutboxRepo:
    async def enqueue(self, event: OutboxEvent) -> None:
        raise NotImplementedError

    async def get(self, event_id: str) -> OutboxEvent | None:
        raise NotImplementedError

    async def claim_due(
        self,
        now: datetime,
        limit: int,
        locked_by: str,
    ) -> Sequence[OutboxEvent]:
        """
        Reclama hasta `limit` eventos PENDING con next_retry_at <= now.

        Se omiten los eventos con un evento anterior del mismo agregado en
        PROCESSING, FAILED o esperando su backoff. Cada evento pasa a PROCESSING con una escritura condicional
        (status = PENDING); si otro worker ganó la carrera se omite.
        """
        raise NotImplementedError

    async def mark_completed(self, event_id: str, locked_by: str, now: datetime) -> bool:
        raise NotImplementedError

    async def defer(self, event_id: str, locked_by: str, now: datetime) -> bool:
        """Devuelve a PENDING un evento reclamado sin contar un intento."""
        raise NotImplementedError

    async def mark_retry(
        self,
        event_id: str,
        locked_by: str,
        retry_count: int,
        next_retry_at: datetime,
        error_message: str | None,
        now: datetime,
    ) -> bool:
        raise NotImplementedError

    async def mark_failed(
        self,
        event_id: str,
        locked_by: str,
        retry_count: int,
        error_message: str | None,
        now: datetime,
    ) -> bool:
        raise NotImplementedError

    async def reclaim_stuck(self, locked_before: datetime, now: datetime) -> int:
        """Devuelve a PENDING los eventos en PROCESSING bloqueados antes de `locked_before`."""
        raise NotImplementedError

    async def reset_failed(self, event_id: str, now: datetime) -> bool:
        raise NotImplementedError

    async def count_by_status(self) -> dict[OutboxStatus, int]:
        raise NotImplementedError

    async def list_by_status(self, status: OutboxStatus, limit: int) -> Sequence[OutboxEvent]:
        raise NotImplementedError

    async def list_by_aggregate(self, aggregate_id: str) -> Sequence[OutboxEvent]:
        raise NotImplementedError

    async def delete_completed_before(self, cutoff: datetime) -> int:
        raise NotImplementedError
