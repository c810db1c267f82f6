"""Entidades del dominio de reservas."""

from app.domain.entities.idempotency_record import (
    DEFAULT_TTL,
    IdempotencyRecord,
    IdempotencyStatus,
)
from app.domain.entities.outbox_event import (
    MAX_RETRIES,
    SCHEMA_VERSION,
    AggregateType,
    OutboxEvent,
    OutboxEventType,
    OutboxStatus,
    compute_backoff,
)
from app.domain.entities.reservation import (
    ACTIVE_STATUSES,
    TERMINAL_STATUSES,
    Reservation,
    ReservationConflict,
    ReservationKind,
    ReservationStatus,
)

__all__ = [
    # Reservation
    "Reservation",
    "ReservationStatus",
    "ReservationKind",
    "ReservationConflict",
    "ACTIVE_STATUSES",
    "TERMINAL_STATUSES",
    # OutboxEvent
    "OutboxEvent",
    "OutboxEventType",
    "OutboxStatus",
    "AggregateType",
    "MAX_RETRIES",
    "SCHEMA_VERSION",
    "compute_backoff",
    # Idempotency
    "IdempotencyRecord",
    "IdempotencyStatus",
    "DEFAULT_TTL",
]
