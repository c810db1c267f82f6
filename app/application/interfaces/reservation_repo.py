from datetime import datetime
from typing import Sequence

from app.domain.entities.reservation import Reservation
from app.domain.value_objects.time_range import TimeRange


class ReservationRepo:
    """
    Puerto de persistencia de reservas.

    Todas las operaciones se invocan dentro de `TransactionManager.start()`.
    """

    async def get(self, reservation_id: str) -> Reservation | None:
        raise NotImplementedError

    async def add(self, reservation: Reservation) -> None:
        raise NotImplementedError

    async def save(self, reservation: Reservation, expected_version: int) -> bool:
        """
        Persiste los cambios solo si la versión almacenada es `expected_version`.

        Returns:
            False si otro escritor cambió la reserva entretanto.
        """
        raise NotImplementedError

    async def find_active_overlapping(
        self,
        resource_id: str,
        time_range: TimeRange,
        exclude_id: str | None = None,
    ) -> Sequence[Reservation]:
        """Reservas pending/confirmed del recurso con start < range.end y end > range.start."""
        raise NotImplementedError

    async def list(
        self,
        resource_id: str | None = None,
        owner_id: str | None = None,
    ) -> Sequence[Reservation]:
        raise NotImplementedError

    async def find_pending_created_before(
        self, cutoff: datetime, limit: int
    ) -> Sequence[Reservation]:
        raise NotImplementedError

    async def delete_expired_updated_before(self, cutoff: datetime) -> int:
        raise NotImplementedError
