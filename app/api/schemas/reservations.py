from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, constr

from app.domain.entities.reservation import (
    Reservation,
    ReservationConflict,
    ReservationKind,
    ReservationStatus,
)

Identifier = constr(strip_whitespace=True, min_length=1, max_length=64)


class CreateReservationRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    resource_id: Identifier
    owner_id: Identifier
    start: datetime
    end: datetime
    kind: ReservationKind = ReservationKind.SURGERY
    description: str | None = Field(default=None, max_length=2000)
    patient_name: str | None = Field(default=None, max_length=255)
    patient_id: str | None = Field(default=None, max_length=64)
    notes: str | None = Field(default=None, max_length=2000)


class UpdateReservationRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    resource_id: Identifier | None = None
    owner_id: Identifier | None = None
    start: datetime | None = None
    end: datetime | None = None
    kind: ReservationKind | None = None
    description: str | None = Field(default=None, max_length=2000)
    notes: str | None = Field(default=None, max_length=2000)
    patient_name: str | None = Field(default=None, max_length=255)
    patient_id: str | None = Field(default=None, max_length=64)
    status: ReservationStatus | None = None
    expected_version: int | None = Field(default=None, ge=0)


class CheckAvailabilityRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    resource_id: Identifier
    start: datetime
    end: datetime
    owner_id: Identifier | None = None


class ConflictResponse(BaseModel):
    reservation_id: str
    start: datetime
    end: datetime
    owner_id: str

    @classmethod
    def from_domain(cls, conflict: ReservationConflict) -> "ConflictResponse":
        return cls(
            reservation_id=conflict.reservation_id,
            start=conflict.start,
            end=conflict.end,
            owner_id=conflict.owner_id,
        )


class CheckAvailabilityResponse(BaseModel):
    available: bool
    conflicts: list[ConflictResponse] = Field(default_factory=list)
    reason: str | None = None


class ReservationResponse(BaseModel):
    id: str
    resource_id: str
    owner_id: str
    start: datetime
    end: datetime
    status: ReservationStatus
    kind: ReservationKind
    description: str | None = None
    patient_name: str | None = None
    patient_id: str | None = None
    notes: str | None = None
    version: int
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_domain(cls, reservation: Reservation) -> "ReservationResponse":
        return cls(
            id=reservation.id,
            resource_id=reservation.resource_id,
            owner_id=reservation.owner_id,
            start=reservation.start,
            end=reservation.end,
            status=reservation.status,
            kind=reservation.kind,
            description=reservation.description,
            patient_name=reservation.patient_name,
            patient_id=reservation.patient_id,
            notes=reservation.notes,
            version=reservation.version,
            created_at=reservation.created_at,
            updated_at=reservation.updated_at,
        )
