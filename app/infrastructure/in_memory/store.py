import asyncio
import copy
from dataclasses import dataclass, field

from app.domain.entities.idempotency_record import IdempotencyRecord
from app.domain.entities.outbox_event import OutboxEvent
from app.domain.entities.reservation import Reservation


@dataclass
class InMemoryStore:
    """
    Estado compartido por los repositorios in-memory.

    `lock` serializa las transacciones; `snapshot`/`restore` implementan
    el rollback.
    """

    reservations: dict[str, Reservation] = field(default_factory=dict)
    counters: dict[str, int] = field(default_factory=dict)
    outbox: dict[str, OutboxEvent] = field(default_factory=dict)
    idempotency: dict[str, IdempotencyRecord] = field(default_factory=dict)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    def snapshot(self) -> tuple:
        return copy.deepcopy((self.reservations, self.counters, self.outbox, self.idempotency))

    def restore(self, snapshot: tuple) -> None:
        self.reservations, self.counters, self.outbox, self.idempotency = snapshot
