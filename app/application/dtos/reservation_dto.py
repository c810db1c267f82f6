"""DTOs para reservas de quirófano."""

from dataclasses import dataclass, field
from datetime import datetime

from app.domain.entities.reservation import (
    ReservationConflict,
    ReservationKind,
    ReservationStatus,
)


@dataclass
class CreateReservationCommand:
    """DTO para crear una nueva reserva."""

    resource_id: str
    owner_id: str
    start: datetime
    end: datetime

    kind: ReservationKind = ReservationKind.SURGERY
    description: str | None = None
    patient_name: str | None = None
    patient_id: str | None = None
    notes: str | None = None

    idempotency_key: str | None = None


@dataclass
class UpdateReservationCommand:
    """
    DTO para actualizar una reserva.

    Los campos en None no se modifican. `status` solo admite
    pending -> confirmed; `expected_version` activa el control optimista.
    """

    resource_id: str | None = None
    owner_id: str | None = None
    start: datetime | None = None
    end: datetime | None = None

    kind: ReservationKind | None = None
    description: str | None = None
    notes: str | None = None
    patient_name: str | None = None
    patient_id: str | None = None

    status: ReservationStatus | None = None
    expected_version: int | None = None

    def descriptive_fields(self) -> dict:
        """Campos que no afectan la ocupación del recurso."""
        values = {
            "kind": self.kind,
            "description": self.description,
            "notes": self.notes,
            "patient_name": self.patient_name,
            "patient_id": self.patient_id,
        }
        return {name: value for name, value in values.items() if value is not None}


@dataclass
class AvailabilityResult:
    """Resultado de una consulta de disponibilidad."""

    available: bool
    conflicts: list[ReservationConflict] = field(default_factory=list)
    reason: str | None = None
