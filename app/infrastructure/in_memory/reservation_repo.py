import copy
from datetime import datetime
from typing import Sequence

from app.application.interfaces.reservation_repo import ReservationRepo
from app.domain.entities.reservation import Reservation, ReservationStatus
from app.domain.value_objects.time_range import TimeRange
from app.infrastructure.in_memory.store import InMemoryStore


class InMemoryReservationRepo(ReservationRepo):
    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    async def get(self, reservation_id: str) -> Reservation | None:
        reservation = self._store.reservations.get(reservation_id)
        return copy.deepcopy(reservation) if reservation else None

    async def add(self, reservation: Reservation) -> None:
        if reservation.id in self._store.reservations:
            raise ValueError(f"Reservation {reservation.id} already exists")
        self._store.reservations[reservation.id] = copy.deepcopy(reservation)

    async def save(self, reservation: Reservation, expected_version: int) -> bool:
        current = self._store.reservations.get(reservation.id)
        if current is None or current.version != expected_version:
            return False
        self._store.reservations[reservation.id] = copy.deepcopy(reservation)
        return True

    async def find_active_overlapping(
        self,
        resource_id: str,
        time_range: TimeRange,
        exclude_id: str | None = None,
    ) -> Sequence[Reservation]:
        return [
            copy.deepcopy(reservation)
            for reservation in self._store.reservations.values()
            if reservation.resource_id == resource_id
            and reservation.is_active
            and reservation.id != exclude_id
            and reservation.time_range.overlaps_with(time_range)
        ]

    async def list(
        self,
        resource_id: str | None = None,
        owner_id: str | None = None,
    ) -> Sequence[Reservation]:
        return [
            copy.deepcopy(reservation)
            for reservation in self._store.reservations.values()
            if (resource_id is None or reservation.resource_id == resource_id)
            and (owner_id is None or reservation.owner_id == owner_id)
        ]

    async def find_pending_created_before(
        self, cutoff: datetime, limit: int
    ) -> Sequence[Reservation]:
        pending = [
            reservation
            for reservation in self._store.reservations.values()
            if reservation.status == ReservationStatus.PENDING
            and reservation.created_at is not None
            and reservation.created_at < cutoff
        ]
        pending.sort(key=lambda r: r.created_at)
        return [copy.deepcopy(reservation) for reservation in pending[:limit]]

    async def delete_expired_updated_before(self, cutoff: datetime) -> int:
        doomed = [
            reservation.id
            for reservation in self._store.reservations.values()
            if reservation.status == ReservationStatus.EXPIRED
            and reservation.updated_at is not None
            and reservation.updated_at < cutoff
        ]
        for reservation_id in doomed:
            del self._store.reservations[reservation_id]
        return len(doomed)
