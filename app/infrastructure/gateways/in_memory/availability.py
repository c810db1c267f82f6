import asyncio

from app.application.interfaces.availability_gateway import (
    ActorAvailability,
    ResourceDirectoryGateway,
    StaffAvailabilityGateway,
)
from app.domain.value_objects.time_range import TimeRange


class StubStaffAvailabilityGateway(StaffAvailabilityGateway):
    """
    Staff siempre disponible salvo los actores marcados como ocupados.

    `error` simula un servicio caído; `delay_seconds` un servicio lento y
    `gate` retiene las llamadas hasta que se active el evento.
    """

    def __init__(self) -> None:
        self.busy_actors: dict[str, str] = {}
        self.error: Exception | None = None
        self.delay_seconds: float = 0.0
        self.gate: asyncio.Event | None = None
        self.calls: list[tuple[str, TimeRange, str]] = []

    def mark_busy(self, actor_id: str, reason: str = "Agenda ocupada") -> None:
        self.busy_actors[actor_id] = reason

    async def get_actor_availability(
        self,
        actor_id: str,
        time_range: TimeRange,
        role: str,
    ) -> ActorAvailability:
        self.calls.append((actor_id, time_range, role))
        if self.gate is not None:
            await self.gate.wait()
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        if self.error is not None:
            raise self.error
        if actor_id in self.busy_actors:
            return ActorAvailability(available=False, reason=self.busy_actors[actor_id])
        return ActorAvailability(available=True)


class StubResourceDirectoryGateway(ResourceDirectoryGateway):
    """Todos los recursos son utilizables salvo los marcados."""

    def __init__(self) -> None:
        self.unusable: set[str] = set()
        self.error: Exception | None = None

    async def is_resource_usable(self, resource_id: str) -> bool:
        if self.error is not None:
            raise self.error
        return resource_id not in self.unusable
