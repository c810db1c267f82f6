"""Implementaciones in-memory para testing y desarrollo local."""

from app.infrastructure.in_memory.idempotency_repo import InMemoryIdempotencyRepo
from app.infrastructure.in_memory.outbox_repo import InMemoryOutboxRepo
from app.infrastructure.in_memory.reservation_repo import InMemoryReservationRepo
from app.infrastructure.in_memory.resource_counter_repo import InMemoryResourceCounterRepo
from app.infrastructure.in_memory.store import InMemoryStore
from app.infrastructure.in_memory.transaction_manager import InMemoryTransactionManager

__all__ = [
    # Repositories
    "InMemoryIdempotencyRepo",
    "InMemoryReservationRepo",
    "InMemoryResourceCounterRepo",
    "InMemoryOutboxRepo",
    # Infrastructure
    "InMemoryStore",
    "InMemoryTransactionManager",
]
