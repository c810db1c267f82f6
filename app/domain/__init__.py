"""
Capa de Dominio - Reservas de quirófanos.

Esta capa contiene la lógica de negocio pura, sin dependencias de frameworks.
Incluye entidades, value objects y excepciones de dominio.

Estructura:
- entities/: Entidades del dominio (Reservation, OutboxEvent, IdempotencyRecord)
- value_objects/: Objetos de valor inmutables (TimeRange)
- errors.py: Excepciones específicas del dominio
"""

from app.domain.entities import (
    AggregateType,
    IdempotencyRecord,
    IdempotencyStatus,
    OutboxEvent,
    OutboxEventType,
    OutboxStatus,
    Reservation,
    ReservationConflict,
    ReservationKind,
    ReservationStatus,
)
from app.domain.errors import (
    AlreadyCancelledError,
    AlreadyTerminalError,
    ConflictError,
    DomainError,
    IdempotencyInProgressError,
    InvalidOutboxStatusError,
    InvalidStatusTransitionError,
    InvalidTimeRangeError,
    OutboxEventNotFoundError,
    ReservationConflictError,
    ReservationNotFoundError,
    StaleReservationError,
    StorageError,
    UnavailableError,
    ValidationError,
)
from app.domain.value_objects import TimeRange

__all__ = [
    # Entities
    "Reservation",
    "ReservationStatus",
    "ReservationKind",
    "ReservationConflict",
    "OutboxEvent",
    "OutboxEventType",
    "OutboxStatus",
    "AggregateType",
    "IdempotencyRecord",
    "IdempotencyStatus",
    # Value Objects
    "TimeRange",
    # Errors
    "DomainError",
    "ValidationError",
    "InvalidTimeRangeError",
    "ConflictError",
    "ReservationConflictError",
    "IdempotencyInProgressError",
    "StaleReservationError",
    "InvalidStatusTransitionError",
    "InvalidOutboxStatusError",
    "AlreadyTerminalError",
    "AlreadyCancelledError",
    "ReservationNotFoundError",
    "OutboxEventNotFoundError",
    "UnavailableError",
    "StorageError",
]
