"""Control de admisión exactly-once por clave de idempotencia."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from app.application.interfaces.clock import Clock
from app.application.interfaces.idempotency_repo import IdempotencyRepo
from app.application.interfaces.transaction_manager import TransactionManager
from app.domain.entities.idempotency_record import DEFAULT_TTL, IdempotencyRecord

logger = logging.getLogger(__name__)


class AdmissionKind(str, Enum):
    FRESH = "fresh"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"


@dataclass(frozen=True)
class Admission:
    kind: AdmissionKind
    reservation_id: str | None = None

    @property
    def is_fresh(self) -> bool:
        return self.kind == AdmissionKind.FRESH

    @property
    def is_in_progress(self) -> bool:
        return self.kind == AdmissionKind.IN_PROGRESS

    @property
    def is_resolved(self) -> bool:
        return self.kind == AdmissionKind.RESOLVED


class IdempotencyGuard:
    """
    Puerta de admisión por clave.

    `begin` confirma el registro en su propia transacción antes de que
    empiece la reserva, así un duplicado concurrente ve IN_PROGRESS.
    `resolve` se invoca dentro de la transacción de la reserva.
    """

    def __init__(
        self,
        idempotency_repo: IdempotencyRepo,
        transaction_manager: TransactionManager,
        clock: Clock,
        ttl: timedelta = DEFAULT_TTL,
    ) -> None:
        self._idempotency_repo = idempotency_repo
        self._transaction_manager = transaction_manager
        self._clock = clock
        self._ttl = ttl

    async def begin(self, key: str) -> Admission:
        now = self._clock.now()
        async with self._transaction_manager.start():
            existing = await self._idempotency_repo.insert_if_absent(
                IdempotencyRecord.start(key, now, self._ttl)
            )
            if existing is None:
                return Admission(AdmissionKind.FRESH)

            if existing.is_expired(now):
                await self._idempotency_repo.delete_if_expired(key, now)
                existing = await self._idempotency_repo.insert_if_absent(
                    IdempotencyRecord.start(key, now, self._ttl)
                )
                if existing is None:
                    logger.info("Expired idempotency key replaced", extra={"idem_key": key})
                    return Admission(AdmissionKind.FRESH)

        if existing.is_resolved:
            return Admission(AdmissionKind.RESOLVED, reservation_id=existing.reservation_id)
        return Admission(AdmissionKind.IN_PROGRESS)

    async def resolve(self, key: str, reservation_id: str) -> None:
        await self._idempotency_repo.mark_completed(key, reservation_id)

    async def discard(self, key: str) -> None:
        """Elimina un registro no resuelto para que la clave pueda reintentarse."""
        async with self._transaction_manager.start():
            record = await self._idempotency_repo.get(key)
            if record is not None and not record.is_resolved:
                await self._idempotency_repo.delete(key)

    async def purge_expired(self, now: datetime | None = None) -> int:
        async with self._transaction_manager.start():
            return await self._idempotency_repo.delete_expired(now or self._clock.now())
