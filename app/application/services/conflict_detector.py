"""Detección de solapamientos entre reservas de un mismo recurso."""

from datetime import datetime

from app.application.interfaces.reservation_repo import ReservationRepo
from app.application.interfaces.transaction_manager import TransactionManager
from app.domain.entities.reservation import ReservationConflict
from app.domain.errors import InvalidTimeRangeError
from app.domain.value_objects.time_range import TimeRange, as_utc


class ConflictDetector:
    """
    Consulta de solo lectura sobre las reservas activas de un recurso.

    Por sí sola no es segura ante concurrencia: el ledger la vuelve a
    ejecutar bajo el candado del recurso dentro de la transacción de commit.
    """

    def __init__(self, reservation_repo: ReservationRepo, transaction_manager: TransactionManager) -> None:
        self._reservation_repo = reservation_repo
        self._transaction_manager = transaction_manager

    @staticmethod
    def validate(time_range: TimeRange, now: datetime) -> None:
        """
        Rechaza intervalos que empiezan en el pasado.

        El orden start < end ya lo garantiza TimeRange.

        Raises:
            InvalidTimeRangeError: Si start < now.
        """
        if time_range.starts_before(now):
            raise InvalidTimeRangeError(
                f"La reserva no puede empezar en el pasado: "
                f"{time_range.start.isoformat()} < {as_utc(now).isoformat()}"
            )

    async def find_overlaps(
        self,
        resource_id: str,
        time_range: TimeRange,
        exclude_id: str | None = None,
    ) -> list[ReservationConflict]:
        async with self._transaction_manager.start():
            candidates = await self._reservation_repo.find_active_overlapping(
                resource_id, time_range, exclude_id=exclude_id
            )

        # El repositorio puede filtrar de más; el intervalo semiabierto decide.
        return [
            ReservationConflict(
                reservation_id=reservation.id,
                start=reservation.start,
                end=reservation.end,
                owner_id=reservation.owner_id,
            )
            for reservation in candidates
            if reservation.is_active
            and reservation.id != exclude_id
            and reservation.time_range.overlaps_with(time_range)
        ]
