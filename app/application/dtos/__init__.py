"""DTOs (Data Transfer Objects) de la capa de aplicación."""

from app.application.dtos.reservation_dto import (
    AvailabilityResult,
    CreateReservationCommand,
    UpdateReservationCommand,
)

__all__ = [
    "CreateReservationCommand",
    "UpdateReservationCommand",
    "AvailabilityResult",
]
