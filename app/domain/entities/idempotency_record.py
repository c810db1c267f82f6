"""Entidad IdempotencyRecord - puerta de admisión por clave de idempotencia."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

DEFAULT_TTL = timedelta(hours=24)


class IdempotencyStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


@dataclass
class IdempotencyRecord:
    """
    Registro único por clave.

    Se hace visible (commit) antes de que termine la transacción de la
    reserva, así una petición duplicada ve IN_PROGRESS y no reserva dos veces.
    """

    key: str
    expires_at: datetime
    status: IdempotencyStatus = IdempotencyStatus.IN_PROGRESS
    reservation_id: str | None = None
    created_at: datetime | None = None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now

    @property
    def is_resolved(self) -> bool:
        return self.status == IdempotencyStatus.COMPLETED and self.reservation_id is not None

    @classmethod
    def start(cls, key: str, now: datetime, ttl: timedelta = DEFAULT_TTL) -> "IdempotencyRecord":
        return cls(
            key=key,
            expires_at=now + ttl,
            status=IdempotencyStatus.IN_PROGRESS,
            created_at=now,
        )
