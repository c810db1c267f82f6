"""Entidad OutboxEvent - representa un evento en el patrón Outbox."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from app.domain.errors import InvalidOutboxStatusError

SCHEMA_VERSION = "1.0"
MAX_RETRIES = 3


class OutboxStatus(str, Enum):
    """Estados de un evento en el outbox."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class OutboxEventType(str, Enum):
    """Tipos de eventos de dominio publicados por el servicio."""

    RESERVATION_CREATED = "reservation.created"
    RESERVATION_UPDATED = "reservation.updated"
    RESERVATION_CANCELLED = "reservation.cancelled"
    RESERVATION_EXPIRED = "reservation.expired"


class AggregateType(str, Enum):
    """Tipos de agregados."""

    RESERVATION = "reservation"


def compute_backoff(retry_count: int) -> timedelta:
    """Backoff exponencial: 2s, 4s, 8s para retry_count 1, 2, 3."""
    return timedelta(seconds=2**retry_count)


@dataclass
class OutboxEvent:
    """
    Entidad que representa un evento en el patrón Transactional Outbox.

    Se persiste en la misma transacción que el cambio de estado de la
    reserva y el worker lo publica después en el bus de mensajes.
    """

    event_id: str
    event_type: OutboxEventType | str
    aggregate_id: str
    aggregate_type: AggregateType | str = AggregateType.RESERVATION

    # Payload del evento (JSON)
    payload: dict[str, Any] = field(default_factory=dict)

    status: OutboxStatus = OutboxStatus.PENDING

    # Reintentos
    retry_count: int = 0
    next_retry_at: datetime | None = None
    processed_at: datetime | None = None
    error_message: str | None = None

    # Locking para procesamiento distribuido
    locked_by: str | None = None
    locked_at: datetime | None = None

    # Timestamps
    created_at: datetime | None = None
    updated_at: datetime | None = None

    # === Propiedades ===

    @property
    def event_type_value(self) -> str:
        return _value(self.event_type)

    @property
    def aggregate_type_value(self) -> str:
        return _value(self.aggregate_type)

    @property
    def is_final(self) -> bool:
        """Verifica si el evento está en un estado final."""
        return self.status in (OutboxStatus.COMPLETED, OutboxStatus.FAILED)

    def is_due(self, now: datetime) -> bool:
        """Verifica si el evento puede ser reclamado en `now`."""
        if self.status != OutboxStatus.PENDING:
            return False
        return self.next_retry_at is None or self.next_retry_at <= now

    def holds_back(self, later: "OutboxEvent", now: datetime) -> bool:
        """
        Verifica si este evento impide publicar `later`.

        Los eventos de un mismo agregado se publican en orden de commit:
        uno anterior en processing, failed o esperando su backoff bloquea
        a los posteriores.
        """
        if self.aggregate_id != later.aggregate_id or self.event_id == later.event_id:
            return False
        if self.created_at is None or later.created_at is None or self.created_at >= later.created_at:
            return False
        if self.status in (OutboxStatus.PROCESSING, OutboxStatus.FAILED):
            return True
        return self.status == OutboxStatus.PENDING and not self.is_due(now)

    # === Métodos de negocio ===

    def claim(self, worker_id: str, now: datetime) -> None:
        self.status = OutboxStatus.PROCESSING
        self.locked_by = worker_id
        self.locked_at = now
        self.updated_at = now

    def release_lock(self) -> None:
        """Libera el lock del evento."""
        self.locked_by = None
        self.locked_at = None

    def mark_completed(self, now: datetime) -> None:
        """Marca el evento como publicado exitosamente."""
        self.status = OutboxStatus.COMPLETED
        self.processed_at = now
        self.error_message = None
        self.updated_at = now
        self.release_lock()

    def mark_retry(self, now: datetime, error_message: str, max_retries: int = MAX_RETRIES) -> None:
        """
        Registra un fallo de publicación.

        Incrementa retry_count; si alcanza max_retries el evento queda en
        FAILED (terminal hasta un reintento manual). En otro caso vuelve a
        PENDING con backoff exponencial.
        """
        self.retry_count += 1
        self.error_message = error_message
        self.updated_at = now
        self.release_lock()

        if self.retry_count >= max_retries:
            self.status = OutboxStatus.FAILED
            return

        self.status = OutboxStatus.PENDING
        self.next_retry_at = now + compute_backoff(self.retry_count)

    def defer(self, now: datetime) -> None:
        """Devuelve a PENDING un evento reclamado que no llegó a publicarse."""
        self.status = OutboxStatus.PENDING
        self.updated_at = now
        self.release_lock()

    def reclaim(self, now: datetime) -> None:
        """Devuelve a PENDING un evento abandonado en PROCESSING."""
        self.status = OutboxStatus.PENDING
        self.next_retry_at = now
        self.updated_at = now
        self.release_lock()

    def reset_for_retry(self, now: datetime) -> None:
        """Reintento manual: FAILED -> PENDING con contador a cero."""
        if self.status != OutboxStatus.FAILED:
            raise InvalidOutboxStatusError(self.event_id, self.status.value, "reintentar")
        self.status = OutboxStatus.PENDING
        self.retry_count = 0
        self.next_retry_at = now
        self.error_message = None
        self.updated_at = now
        self.release_lock()

    def to_envelope(self) -> dict[str, Any]:
        """Sobre publicado en el bus de mensajes."""
        timestamp = self.created_at.isoformat() if self.created_at else None
        return {
            "event_id": self.event_id,
            "event_type": self.event_type_value,
            "aggregate_id": self.aggregate_id,
            "timestamp": timestamp,
            "payload": self.payload,
            "schema_version": SCHEMA_VERSION,
        }

    @classmethod
    def for_reservation(
        cls,
        event_id: str,
        event_type: OutboxEventType,
        reservation_id: str,
        payload: dict[str, Any],
        now: datetime,
    ) -> "OutboxEvent":
        """Factory para crear un evento asociado a una reserva."""
        return cls(
            event_id=event_id,
            event_type=event_type,
            aggregate_id=reservation_id,
            aggregate_type=AggregateType.RESERVATION,
            payload=payload,
            status=OutboxStatus.PENDING,
            next_retry_at=now,
            created_at=now,
            updated_at=now,
        )


def _value(item: Enum | str) -> str:
    return item.value if isinstance(item, Enum) else item
