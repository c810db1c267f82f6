"""Barrido periódico que expira reservas abandonadas y purga registros viejos."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from app.application.interfaces.clock import Clock
from app.application.interfaces.reservation_repo import ReservationRepo
from app.application.interfaces.transaction_manager import TransactionManager
from app.application.services.idempotency_guard import IdempotencyGuard
from app.application.services.reservation_ledger import ReservationLedger
from app.domain.errors import AlreadyTerminalError, ConflictError, ReservationNotFoundError

logger = logging.getLogger(__name__)


@dataclass
class PurgeResult:
    reservations: int = 0
    idempotency_keys: int = 0


class ExpirationSweeper:
    """
    Expira reservas pending no confirmadas a tiempo.

    Una reserva que cambió entre la consulta y la expiración (confirmada o
    cancelada en paralelo) se omite y queda registrada en el log.
    """

    def __init__(
        self,
        ledger: ReservationLedger,
        reservation_repo: ReservationRepo,
        idempotency_guard: IdempotencyGuard,
        transaction_manager: TransactionManager,
        clock: Clock,
        pending_timeout_minutes: int = 15,
        batch_size: int = 100,
        retention_days: int = 30,
    ) -> None:
        self._ledger = ledger
        self._reservation_repo = reservation_repo
        self._idempotency_guard = idempotency_guard
        self._transaction_manager = transaction_manager
        self._clock = clock
        self._pending_timeout = timedelta(minutes=pending_timeout_minutes)
        self._batch_size = batch_size
        self._retention = timedelta(days=retention_days)

    async def sweep(self, now: datetime | None = None) -> int:
        """
        Expira las reservas pending creadas antes de now - timeout.

        Returns:
            Número de reservas expiradas.
        """
        now = now or self._clock.now()
        cutoff = now - self._pending_timeout
        async with self._transaction_manager.start():
            candidates = await self._reservation_repo.find_pending_created_before(
                cutoff, self._batch_size
            )

        expired = 0
        for reservation in candidates:
            try:
                await self._ledger.expire(reservation.id, now)
            except (ConflictError, AlreadyTerminalError, ReservationNotFoundError) as exc:
                logger.info(
                    "Skipping reservation changed during sweep",
                    extra={"reservation_id": reservation.id, "reason": exc.code},
                )
                continue
            expired += 1

        if expired:
            logger.info("Pending reservations expired", extra={"count": expired})
        return expired

    async def purge(self, now: datetime | None = None) -> PurgeResult:
        """Elimina reservas expiradas antiguas y claves de idempotencia vencidas."""
        now = now or self._clock.now()
        result = PurgeResult()
        async with self._transaction_manager.start():
            result.reservations = await self._reservation_repo.delete_expired_updated_before(
                now - self._retention
            )
        result.idempotency_keys = await self._idempotency_guard.purge_expired(now)

        logger.info(
            "Retention purge finished",
            extra={
                "reservations": result.reservations,
                "idempotency_keys": result.idempotency_keys,
            },
        )
        return result
