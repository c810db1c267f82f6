from datetime import datetime
from typing import Any, Sequence

from sqlalchemy import delete, insert, select, update

from app.application.interfaces.reservation_repo import ReservationRepo
from app.domain.entities.reservation import (
    ACTIVE_STATUSES,
    Reservation,
    ReservationKind,
    ReservationStatus,
)
from app.domain.value_objects.time_range import TimeRange
from app.infrastructure.db.tables import from_db, reservations, to_db
from app.infrastructure.db.transaction_manager import SQLAlchemyTransactionManager


class ReservationRepoSQL(ReservationRepo):
    def __init__(self, transaction_manager: SQLAlchemyTransactionManager) -> None:
        self._tx = transaction_manager

    async def get(self, reservation_id: str) -> Reservation | None:
        stmt = select(reservations).where(reservations.c.id == reservation_id)
        result = await self._tx.session.execute(stmt)
        row = result.mappings().first()
        return _to_entity(row) if row else None

    async def add(self, reservation: Reservation) -> None:
        stmt = insert(reservations).values(id=reservation.id, **_to_values(reservation))
        await self._tx.session.execute(stmt)

    async def save(self, reservation: Reservation, expected_version: int) -> bool:
        stmt = (
            update(reservations)
            .where(
                reservations.c.id == reservation.id,
                reservations.c.version == expected_version,
            )
            .values(**_to_values(reservation))
        )
        result = await self._tx.session.execute(stmt)
        return result.rowcount == 1

    async def find_active_overlapping(
        self,
        resource_id: str,
        time_range: TimeRange,
        exclude_id: str | None = None,
    ) -> Sequence[Reservation]:
        stmt = select(reservations).where(
            reservations.c.resource_id == resource_id,
            reservations.c.status.in_([status.value for status in ACTIVE_STATUSES]),
            reservations.c.start_time < to_db(time_range.end),
            reservations.c.end_time > to_db(time_range.start),
        )
        if exclude_id is not None:
            stmt = stmt.where(reservations.c.id != exclude_id)
        result = await self._tx.session.execute(stmt)
        return [_to_entity(row) for row in result.mappings().all()]

    async def list(
        self,
        resource_id: str | None = None,
        owner_id: str | None = None,
    ) -> Sequence[Reservation]:
        stmt = select(reservations).order_by(reservations.c.start_time)
        if resource_id is not None:
            stmt = stmt.where(reservations.c.resource_id == resource_id)
        if owner_id is not None:
            stmt = stmt.where(reservations.c.owner_id == owner_id)
        result = await self._tx.session.execute(stmt)
        return [_to_entity(row) for row in result.mappings().all()]

    async def find_pending_created_before(
        self, cutoff: datetime, limit: int
    ) -> Sequence[Reservation]:
        stmt = (
            select(reservations)
            .where(
                reservations.c.status == ReservationStatus.PENDING.value,
                reservations.c.created_at < to_db(cutoff),
            )
            .order_by(reservations.c.created_at)
            .limit(limit)
        )
        result = await self._tx.session.execute(stmt)
        return [_to_entity(row) for row in result.mappings().all()]

    async def delete_expired_updated_before(self, cutoff: datetime) -> int:
        stmt = delete(reservations).where(
            reservations.c.status == ReservationStatus.EXPIRED.value,
            reservations.c.updated_at < to_db(cutoff),
        )
        result = await self._tx.session.execute(stmt)
        return result.rowcount or 0


def _to_values(reservation: Reservation) -> dict[str, Any]:
    return {
        "resource_id": reservation.resource_id,
        "owner_id": reservation.owner_id,
        "start_time": to_db(reservation.start),
        "end_time": to_db(reservation.end),
        "status": reservation.status.value,
        "kind": reservation.kind.value,
        "description": reservation.description,
        "patient_name": reservation.patient_name,
        "patient_id": reservation.patient_id,
        "notes": reservation.notes,
        "idempotency_key": reservation.idempotency_key,
        "version": reservation.version,
        "created_at": to_db(reservation.created_at),
        "updated_at": to_db(reservation.updated_at),
    }


def _to_entity(row) -> Reservation:
    return Reservation(
        id=row["id"],
        resource_id=row["resource_id"],
        owner_id=row["owner_id"],
        start=from_db(row["start_time"]),
        end=from_db(row["end_time"]),
        status=ReservationStatus(row["status"]),
        kind=ReservationKind(row["kind"]),
        description=row["description"],
        patient_name=row["patient_name"],
        patient_id=row["patient_id"],
        notes=row["notes"],
        idempotency_key=row["idempotency_key"],
        version=row["version"],
        created_at=from_db(row["created_at"]),
        updated_at=from_db(row["updated_at"]),
    )
