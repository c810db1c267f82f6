"""Worker para publicar eventos del Outbox Pattern."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from uuid import uuid4

from app.application.interfaces.clock import Clock
from app.application.interfaces.event_publisher import EventPublisher
from app.application.interfaces.outbox_repo import OutboxRepo
from app.application.interfaces.transaction_manager import TransactionManager
from app.domain.entities.outbox_event import MAX_RETRIES, OutboxEvent, OutboxStatus

logger = logging.getLogger(__name__)


@dataclass
class OutboxCycleResult:
    """Resumen de un ciclo de publicación."""

    reclaimed: int = 0
    claimed: int = 0
    completed: int = 0
    retried: int = 0
    failed: int = 0
    deferred: int = 0


class OutboxWorker:
    """
    Worker que publica eventos del outbox en el bus de mensajes.

    Implementa el patrón Transactional Outbox para garantizar que todo
    cambio de estado de una reserva se observe eventualmente fuera del
    servicio (entrega at-least-once).

    Características:
    - Claim con escritura condicional (pending -> processing)
    - Backoff exponencial en reintentos (2s, 4s, 8s)
    - Recuperación de eventos abandonados en processing
    - Limpieza periódica de eventos completados
    """

    def __init__(
        self,
        transaction_manager: TransactionManager,
        outbox_repo: OutboxRepo,
        publisher: EventPublisher,
        clock: Clock,
        worker_id: str | None = None,
        batch_size: int = 100,
        max_retries: int = MAX_RETRIES,
        processing_timeout_seconds: int = 300,
        publish_timeout_seconds: float = 10.0,
        retention_days: int = 7,
    ) -> None:
        """
        Inicializa el worker.

        Args:
            transaction_manager: Unidad de trabajo del almacenamiento.
            outbox_repo: Repositorio de eventos outbox.
            publisher: Primitiva de publicación del bus.
            clock: Servicio de reloj.
            worker_id: Identificador único del worker (auto-generado si no se provee).
            batch_size: Número máximo de eventos a reclamar por ciclo.
            max_retries: Fallos tras los que un evento queda en FAILED.
            processing_timeout_seconds: Tiempo tras el que un evento en processing se recupera.
            publish_timeout_seconds: Timeout de cada publicación.
            retention_days: Días que se conservan los eventos completados.
        """
        self._transaction_manager = transaction_manager
        self._outbox_repo = outbox_repo
        self._publisher = publisher
        self._clock = clock
        self._worker_id = worker_id or f"worker-{uuid4().hex[:8]}"
        self._batch_size = batch_size
        self._max_retries = max_retries
        self._processing_timeout = timedelta(seconds=processing_timeout_seconds)
        self._publish_timeout = publish_timeout_seconds
        self._retention = timedelta(days=retention_days)

    @property
    def worker_id(self) -> str:
        """Retorna el ID del worker."""
        return self._worker_id

    async def run_once(self, now: datetime | None = None) -> OutboxCycleResult:
        """
        Ejecuta un ciclo: recupera eventos abandonados, reclama y publica.

        Returns:
            Conteo de eventos por resultado.
        """
        now = now or self._clock.now()
        result = OutboxCycleResult()

        async with self._transaction_manager.start():
            result.reclaimed = await self._outbox_repo.reclaim_stuck(
                locked_before=now - self._processing_timeout, now=now
            )
        if result.reclaimed:
            logger.warning(
                "Reclaimed stuck outbox events",
                extra={"count": result.reclaimed, "worker_id": self._worker_id},
            )

        async with self._transaction_manager.start():
            events = await self._outbox_repo.claim_due(
                now=now, limit=self._batch_size, locked_by=self._worker_id
            )
        result.claimed = len(events)

        # Agregados con un evento sin publicar en este ciclo
        stalled: set[str] = set()
        for event in events:
            if event.aggregate_id in stalled:
                await self._defer(event)
                result.deferred += 1
                continue
            status = await self._process_event(event)
            if status != OutboxStatus.COMPLETED:
                stalled.add(event.aggregate_id)
            if status == OutboxStatus.COMPLETED:
                result.completed += 1
            elif status == OutboxStatus.FAILED:
                result.failed += 1
            elif status == OutboxStatus.PENDING:
                result.retried += 1

        if result.claimed:
            logger.info(
                "Outbox cycle finished",
                extra={
                    "worker_id": self._worker_id,
                    "claimed": result.claimed,
                    "completed": result.completed,
                    "retried": result.retried,
                    "failed": result.failed,
                    "deferred": result.deferred,
                },
            )
        return result

    async def cleanup(self, now: datetime | None = None) -> int:
        """Elimina eventos completados más antiguos que la retención."""
        now = now or self._clock.now()
        async with self._transaction_manager.start():
            deleted = await self._outbox_repo.delete_completed_before(now - self._retention)
        if deleted:
            logger.info("Completed outbox events purged", extra={"count": deleted})
        return deleted

    async def _process_event(self, event: OutboxEvent) -> OutboxStatus | None:
        """
        Publica un evento individual.

        Returns:
            Estado resultante, o None si el worker perdió el lock.
        """
        try:
            await asyncio.wait_for(
                self._publisher.publish(
                    topic=event.event_type_value,
                    key=event.aggregate_id,
                    message=event.to_envelope(),
                ),
                timeout=self._publish_timeout,
            )
        except Exception as exc:
            return await self._handle_failure(event, exc)

        now = self._clock.now()
        async with self._transaction_manager.start():
            updated = await self._outbox_repo.mark_completed(
                event.event_id, locked_by=self._worker_id, now=now
            )
        if not updated:
            logger.warning(
                "Outbox event lock lost before completion",
                extra={"event_id": event.event_id, "worker_id": self._worker_id},
            )
            return None
        return OutboxStatus.COMPLETED

    async def _defer(self, event: OutboxEvent) -> None:
        """Devuelve el evento a PENDING tras un evento anterior sin publicar."""
        async with self._transaction_manager.start():
            await self._outbox_repo.defer(
                event.event_id, locked_by=self._worker_id, now=self._clock.now()
            )
        logger.info(
            "Outbox event deferred behind an unpublished event",
            extra={"event_id": event.event_id, "aggregate_id": event.aggregate_id},
        )

    async def _handle_failure(self, event: OutboxEvent, exc: Exception) -> OutboxStatus | None:
        """
        Maneja el fallo de publicación de un evento.

        Implementa backoff exponencial; al agotar los reintentos el
        evento queda en FAILED hasta un reintento manual.
        """
        now = self._clock.now()
        error_message = str(exc) or exc.__class__.__name__
        event.mark_retry(now, error_message, max_retries=self._max_retries)

        async with self._transaction_manager.start():
            if event.status == OutboxStatus.FAILED:
                updated = await self._outbox_repo.mark_failed(
                    event.event_id,
                    locked_by=self._worker_id,
                    retry_count=event.retry_count,
                    error_message=error_message,
                    now=now,
                )
            else:
                updated = await self._outbox_repo.mark_retry(
                    event.event_id,
                    locked_by=self._worker_id,
                    retry_count=event.retry_count,
                    next_retry_at=event.next_retry_at,
                    error_message=error_message,
                    now=now,
                )

        if not updated:
            logger.warning(
                "Outbox event lock lost before failure was recorded",
                extra={"event_id": event.event_id, "worker_id": self._worker_id},
            )
            return None

        if event.status == OutboxStatus.FAILED:
            logger.critical(
                "Outbox event exhausted its retries",
                extra={
                    "event_id": event.event_id,
                    "event_type": event.event_type_value,
                    "aggregate_id": event.aggregate_id,
                    "retry_count": event.retry_count,
                    "error": error_message,
                },
            )
        else:
            logger.warning(
                "Outbox event publish failed, retry scheduled",
                extra={
                    "event_id": event.event_id,
                    "retry_count": event.retry_count,
                    "next_retry_at": event.next_retry_at.isoformat(),
                    "error": error_message,
                },
            )
        return event.status
