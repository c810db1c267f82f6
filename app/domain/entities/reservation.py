"""Entidad Reservation - Agregado raíz del dominio."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from app.domain.errors import (
    AlreadyCancelledError,
    AlreadyTerminalError,
    InvalidStatusTransitionError,
)
from app.domain.value_objects.time_range import TimeRange


class ReservationStatus(str, Enum):
    """Estados posibles de una reserva."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


ACTIVE_STATUSES = (ReservationStatus.PENDING, ReservationStatus.CONFIRMED)
TERMINAL_STATUSES = (ReservationStatus.CANCELLED, ReservationStatus.EXPIRED)


class ReservationKind(str, Enum):
    """Tipo de uso del quirófano."""

    SURGERY = "surgery"
    CONSULTATION = "consultation"
    EMERGENCY = "emergency"
    MAINTENANCE = "maintenance"


@dataclass(frozen=True)
class ReservationConflict:
    """Reserva activa que se solapa con el intervalo consultado."""

    reservation_id: str
    start: datetime
    end: datetime
    owner_id: str


@dataclass
class Reservation:
    """
    Entidad principal del dominio - Agregado Raíz.

    Representa la reserva de un recurso (quirófano) por un actor
    (cirujano) durante un intervalo semiabierto. Cada mutación
    incrementa `version` en exactamente una unidad.
    """

    # Identificadores
    id: str
    resource_id: str
    owner_id: str

    # Intervalo reservado
    start: datetime
    end: datetime

    # Estado
    status: ReservationStatus = ReservationStatus.PENDING
    kind: ReservationKind = ReservationKind.SURGERY

    # Datos descriptivos
    description: str | None = None
    patient_name: str | None = None
    patient_id: str | None = None
    notes: str | None = None

    idempotency_key: str | None = None

    # Control de concurrencia
    version: int = 0

    # Timestamps
    created_at: datetime | None = None
    updated_at: datetime | None = None

    # === Propiedades calculadas ===

    @property
    def time_range(self) -> TimeRange:
        """Retorna el intervalo como Value Object."""
        return TimeRange(start=self.start, end=self.end)

    @property
    def is_active(self) -> bool:
        """Una reserva activa ocupa el recurso (pending o confirmed)."""
        return self.status in ACTIVE_STATUSES

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    # === Métodos de negocio ===

    def _touch(self, now: datetime) -> None:
        self.version += 1
        self.updated_at = now

    def ensure_mutable(self) -> None:
        """Lanza AlreadyTerminalError si la reserva ya no admite cambios."""
        if self.status == ReservationStatus.CANCELLED:
            raise AlreadyCancelledError(self.id)
        if self.is_terminal:
            raise AlreadyTerminalError(self.id, self.status.value)

    def reschedule(
        self,
        now: datetime,
        resource_id: str | None = None,
        owner_id: str | None = None,
        time_range: TimeRange | None = None,
        **fields: Any,
    ) -> None:
        """Aplica un cambio de recurso, actor, horario y/o campos descriptivos."""
        self.ensure_mutable()
        if resource_id is not None:
            self.resource_id = resource_id
        if owner_id is not None:
            self.owner_id = owner_id
        if time_range is not None:
            self.start = time_range.start
            self.end = time_range.end
        for name, value in fields.items():
            setattr(self, name, value)
        self._touch(now)

    def confirm(self, now: datetime) -> None:
        """Transición pending -> confirmed."""
        self.ensure_mutable()
        if self.status != ReservationStatus.PENDING:
            raise InvalidStatusTransitionError(
                self.id, self.status.value, ReservationStatus.CONFIRMED.value
            )
        self.status = ReservationStatus.CONFIRMED
        self._touch(now)

    def cancel(self, now: datetime, reason: str | None = None) -> None:
        """Cancela la reserva. Una segunda cancelación es un error."""
        self.ensure_mutable()
        self.status = ReservationStatus.CANCELLED
        if reason:
            self.notes = f"{self.notes or ''}\nCancelled: {reason}".strip()
        self._touch(now)

    def expire(self, now: datetime) -> None:
        """Transición pending -> expired (la dispara el barrido del sistema)."""
        self.ensure_mutable()
        if self.status != ReservationStatus.PENDING:
            raise InvalidStatusTransitionError(
                self.id, self.status.value, ReservationStatus.EXPIRED.value
            )
        self.status = ReservationStatus.EXPIRED
        self._touch(now)

    def to_event_payload(self) -> dict[str, Any]:
        """Snapshot serializable usado como payload de los eventos de dominio."""
        return {
            "reservation_id": self.id,
            "resource_id": self.resource_id,
            "owner_id": self.owner_id,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "status": self.status.value,
            "kind": self.kind.value,
            "description": self.description,
            "version": self.version,
        }
