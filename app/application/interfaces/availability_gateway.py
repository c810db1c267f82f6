"""Puertos hacia los servicios externos de disponibilidad."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime

from app.domain.value_objects.time_range import TimeRange


@dataclass(frozen=True)
class ActorConflict:
    start: datetime
    end: datetime
    reservation_id: str | None = None
    description: str | None = None


@dataclass(frozen=True)
class ActorAvailability:
    available: bool
    reason: str | None = None
    conflicts: list[ActorConflict] = field(default_factory=list)

    @classmethod
    def denied(cls, reason: str) -> "ActorAvailability":
        """Resultado determinista para errores y timeouts (fail closed)."""
        return cls(available=False, reason=reason)


class StaffAvailabilityGateway(ABC):
    @abstractmethod
    async def get_actor_availability(
        self,
        actor_id: str,
        time_range: TimeRange,
        role: str,
    ) -> ActorAvailability:
        """
        Consulta la disponibilidad de un miembro del staff (p. ej. cirujano).

        Las implementaciones deben acotar la llamada con un timeout y
        devolver `ActorAvailability.denied(...)` ante cualquier error.
        """


class ResourceDirectoryGateway(ABC):
    @abstractmethod
    async def is_resource_usable(self, resource_id: str) -> bool:
        """
        Indica si el recurso existe, está activo y no está en mantenimiento.

        Ante error o timeout debe devolver False.
        """
