from datetime import datetime
from typing import Any, Sequence

from sqlalchemy import and_, delete, func, insert, or_, select, update

from app.application.interfaces.outbox_repo import OutboxRepo
from app.domain.entities.outbox_event import OutboxEvent, OutboxStatus
from app.infrastructure.db.tables import from_db, outbox_events, to_db
from app.infrastructure.db.transaction_manager import SQLAlchemyTransactionManager


class OutboxRepoSQL(OutboxRepo):
    def __init__(self, transaction_manager: SQLAlchemyTransactionManager) -> None:
        self._tx = transaction_manager

    async def enqueue(self, event: OutboxEvent) -> None:
        stmt = insert(outbox_events).values(
            event_id=event.event_id,
            event_type=event.event_type_value,
            aggregate_id=event.aggregate_id,
            aggregate_type=event.aggregate_type_value,
            payload=event.payload,
            status=event.status.value,
            retry_count=event.retry_count,
            next_retry_at=to_db(event.next_retry_at),
            created_at=to_db(event.created_at),
            updated_at=to_db(event.updated_at or event.created_at),
        )
        await self._tx.session.execute(stmt)

    async def get(self, event_id: str) -> OutboxEvent | None:
        stmt = select(outbox_events).where(outbox_events.c.event_id == event_id)
        row = (await self._tx.session.execute(stmt)).mappings().first()
        return _to_entity(row) if row else None

    async def claim_due(
        self,
        now: datetime,
        limit: int,
        locked_by: str,
    ) -> Sequence[OutboxEvent]:
        session = self._tx.session
        older = outbox_events.alias("older")
        held_back = (
            select(older.c.event_id)
            .where(
                older.c.aggregate_id == outbox_events.c.aggregate_id,
                older.c.created_at < outbox_events.c.created_at,
                or_(
                    older.c.status.in_([OutboxStatus.PROCESSING.value, OutboxStatus.FAILED.value]),
                    and_(
                        older.c.status == OutboxStatus.PENDING.value,
                        older.c.next_retry_at > to_db(now),
                    ),
                ),
            )
            .exists()
        )
        candidates = (
            select(outbox_events.c.event_id)
            .where(
                outbox_events.c.status == OutboxStatus.PENDING.value,
                or_(
                    outbox_events.c.next_retry_at.is_(None),
                    outbox_events.c.next_retry_at <= to_db(now),
                ),
                ~held_back,
            )
            .order_by(outbox_events.c.created_at)
            .limit(limit)
        )
        event_ids = (await session.execute(candidates)).scalars().all()

        claimed: list[str] = []
        for event_id in event_ids:
            stmt = (
                update(outbox_events)
                .where(
                    outbox_events.c.event_id == event_id,
                    outbox_events.c.status == OutboxStatus.PENDING.value,
                )
                .values(
                    status=OutboxStatus.PROCESSING.value,
                    locked_by=locked_by,
                    locked_at=to_db(now),
                    updated_at=to_db(now),
                )
            )
            result = await session.execute(stmt)
            if result.rowcount == 1:
                claimed.append(event_id)

        if not claimed:
            return []
        stmt = (
            select(outbox_events)
            .where(outbox_events.c.event_id.in_(claimed))
            .order_by(outbox_events.c.created_at)
        )
        return [_to_entity(row) for row in (await session.execute(stmt)).mappings().all()]

    async def _update_owned(self, event_id: str, locked_by: str, **values: Any) -> bool:
        stmt = (
            update(outbox_events)
            .where(
                outbox_events.c.event_id == event_id,
                outbox_events.c.status == OutboxStatus.PROCESSING.value,
                outbox_events.c.locked_by == locked_by,
            )
            .values(locked_by=None, locked_at=None, **values)
        )
        result = await self._tx.session.execute(stmt)
        return result.rowcount == 1

    async def mark_completed(self, event_id: str, locked_by: str, now: datetime) -> bool:
        return await self._update_owned(
            event_id,
            locked_by,
            status=OutboxStatus.COMPLETED.value,
            processed_at=to_db(now),
            error_message=None,
            updated_at=to_db(now),
        )

    async def defer(self, event_id: str, locked_by: str, now: datetime) -> bool:
        return await self._update_owned(
            event_id,
            locked_by,
            status=OutboxStatus.PENDING.value,
            updated_at=to_db(now),
        )

    async def mark_retry(
        self,
        event_id: str,
        locked_by: str,
        retry_count: int,
        next_retry_at: datetime,
        error_message: str | None,
        now: datetime,
    ) -> bool:
        return await self._update_owned(
            event_id,
            locked_by,
            status=OutboxStatus.PENDING.value,
            retry_count=retry_count,
            next_retry_at=to_db(next_retry_at),
            error_message=error_message,
            updated_at=to_db(now),
        )

    async def mark_failed(
        self,
        event_id: str,
        locked_by: str,
        retry_count: int,
        error_message: str | None,
        now: datetime,
    ) -> bool:
        return await self._update_owned(
            event_id,
            locked_by,
            status=OutboxStatus.FAILED.value,
            retry_count=retry_count,
            error_message=error_message,
            updated_at=to_db(now),
        )

    async def reclaim_stuck(self, locked_before: datetime, now: datetime) -> int:
        stmt = (
            update(outbox_events)
            .where(
                outbox_events.c.status == OutboxStatus.PROCESSING.value,
                outbox_events.c.locked_at < to_db(locked_before),
            )
            .values(
                status=OutboxStatus.PENDING.value,
                next_retry_at=to_db(now),
                locked_by=None,
                locked_at=None,
                updated_at=to_db(now),
            )
        )
        result = await self._tx.session.execute(stmt)
        return result.rowcount or 0

    async def reset_failed(self, event_id: str, now: datetime) -> bool:
        stmt = (
            update(outbox_events)
            .where(
                outbox_events.c.event_id == event_id,
                outbox_events.c.status == OutboxStatus.FAILED.value,
            )
            .values(
                status=OutboxStatus.PENDING.value,
                retry_count=0,
                next_retry_at=to_db(now),
                error_message=None,
                locked_by=None,
                locked_at=None,
                updated_at=to_db(now),
            )
        )
        result = await self._tx.session.execute(stmt)
        return result.rowcount == 1

    async def count_by_status(self) -> dict[OutboxStatus, int]:
        stmt = select(outbox_events.c.status, func.count()).group_by(outbox_events.c.status)
        rows = (await self._tx.session.execute(stmt)).all()
        return {OutboxStatus(status): count for status, count in rows}

    async def list_by_status(self, status: OutboxStatus, limit: int) -> Sequence[OutboxEvent]:
        stmt = (
            select(outbox_events)
            .where(outbox_events.c.status == status.value)
            .order_by(outbox_events.c.updated_at)
            .limit(limit)
        )
        return [_to_entity(row) for row in (await self._tx.session.execute(stmt)).mappings().all()]

    async def list_by_aggregate(self, aggregate_id: str) -> Sequence[OutboxEvent]:
        stmt = (
            select(outbox_events)
            .where(outbox_events.c.aggregate_id == aggregate_id)
            .order_by(outbox_events.c.created_at)
        )
        return [_to_entity(row) for row in (await self._tx.session.execute(stmt)).mappings().all()]

    async def delete_completed_before(self, cutoff: datetime) -> int:
        stmt = delete(outbox_events).where(
            outbox_events.c.status == OutboxStatus.COMPLETED.value,
            outbox_events.c.processed_at < to_db(cutoff),
        )
        result = await self._tx.session.execute(stmt)
        return result.rowcount or 0


def _to_entity(row) -> OutboxEvent:
    return OutboxEvent(
        event_id=row["event_id"],
        event_type=row["event_type"],
        aggregate_id=row["aggregate_id"],
        aggregate_type=row["aggregate_type"],
        payload=row["payload"] or {},
        status=OutboxStatus(row["status"]),
        retry_count=row["retry_count"],
        next_retry_at=from_db(row["next_retry_at"]),
        processed_at=from_db(row["processed_at"]),
        error_message=row["error_message"],
        locked_by=row["locked_by"],
        locked_at=from_db(row["locked_at"]),
        created_at=from_db(row["created_at"]),
        updated_at=from_db(row["updated_at"]),
    )
