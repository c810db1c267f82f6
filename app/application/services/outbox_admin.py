"""Superficie operativa del outbox: métricas, fallidos y reintento manual."""

import logging
from typing import TYPE_CHECKING

from app.application.interfaces.clock import Clock
from app.application.interfaces.outbox_repo import OutboxRepo
from app.application.interfaces.transaction_manager import TransactionManager
from app.domain.entities.outbox_event import OutboxEvent, OutboxStatus
from app.domain.errors import OutboxEventNotFoundError

if TYPE_CHECKING:
    from app.infrastructure.messaging.outbox_worker import OutboxCycleResult, OutboxWorker

logger = logging.getLogger(__name__)


class OutboxAdmin:
    def __init__(
        self,
        transaction_manager: TransactionManager,
        outbox_repo: OutboxRepo,
        worker: "OutboxWorker",
        clock: Clock,
    ) -> None:
        self._transaction_manager = transaction_manager
        self._outbox_repo = outbox_repo
        self._worker = worker
        self._clock = clock

    async def stats(self) -> dict[str, int]:
        """Conteo por estado; todos los estados aparecen aunque estén en cero."""
        async with self._transaction_manager.start():
            counts = await self._outbox_repo.count_by_status()
        return {status.value: counts.get(status, 0) for status in OutboxStatus}

    async def list_failed(self, limit: int = 100) -> list[OutboxEvent]:
        async with self._transaction_manager.start():
            events = await self._outbox_repo.list_by_status(OutboxStatus.FAILED, limit)
        return list(events)

    async def retry_failed(self, event_id: str) -> OutboxEvent:
        """
        Reintento manual de un evento FAILED.

        Raises:
            OutboxEventNotFoundError: Si el evento no existe.
            InvalidOutboxStatusError: Si el evento no está en FAILED.
        """
        now = self._clock.now()
        async with self._transaction_manager.start():
            event = await self._outbox_repo.get(event_id)
            if event is None:
                raise OutboxEventNotFoundError(event_id)
            event.reset_for_retry(now)
            await self._outbox_repo.reset_failed(event_id, now)

        logger.info("Outbox event scheduled for manual retry", extra={"event_id": event_id})
        return event

    async def process_now(self) -> "OutboxCycleResult":
        return await self._worker.run_once()
