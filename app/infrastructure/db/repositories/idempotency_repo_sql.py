from datetime import datetime

from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import IntegrityError

from app.application.interfaces.idempotency_repo import IdempotencyRepo
from app.domain.entities.idempotency_record import IdempotencyRecord, IdempotencyStatus
from app.infrastructure.db.tables import from_db, idempotency_keys, to_db
from app.infrastructure.db.transaction_manager import SQLAlchemyTransactionManager


class IdempotencyRepoSQL(IdempotencyRepo):
    def __init__(self, transaction_manager: SQLAlchemyTransactionManager) -> None:
        self._tx = transaction_manager

    async def insert_if_absent(self, record: IdempotencyRecord) -> IdempotencyRecord | None:
        session = self._tx.session
        stmt = insert(idempotency_keys).values(
            idem_key=record.key,
            status=record.status.value,
            reservation_id=record.reservation_id,
            created_at=to_db(record.created_at),
            expires_at=to_db(record.expires_at),
        )
        try:
            async with session.begin_nested():
                await session.execute(stmt)
        except IntegrityError:
            existing = await self.get(record.key)
            if existing is None:
                raise
            return existing
        return None

    async def get(self, key: str) -> IdempotencyRecord | None:
        stmt = select(idempotency_keys).where(idempotency_keys.c.idem_key == key).limit(1)
        row = (await self._tx.session.execute(stmt)).mappings().first()
        if not row:
            return None
        return IdempotencyRecord(
            key=row["idem_key"],
            expires_at=from_db(row["expires_at"]),
            status=IdempotencyStatus(row["status"]),
            reservation_id=row["reservation_id"],
            created_at=from_db(row["created_at"]),
        )

    async def mark_completed(self, key: str, reservation_id: str) -> None:
        stmt = (
            update(idempotency_keys)
            .where(idempotency_keys.c.idem_key == key)
            .values(status=IdempotencyStatus.COMPLETED.value, reservation_id=reservation_id)
        )
        await self._tx.session.execute(stmt)

    async def delete(self, key: str) -> None:
        await self._tx.session.execute(
            delete(idempotency_keys).where(idempotency_keys.c.idem_key == key)
        )

    async def delete_if_expired(self, key: str, now: datetime) -> bool:
        stmt = delete(idempotency_keys).where(
            idempotency_keys.c.idem_key == key,
            idempotency_keys.c.expires_at <= to_db(now),
        )
        result = await self._tx.session.execute(stmt)
        return result.rowcount == 1

    async def delete_expired(self, now: datetime) -> int:
        stmt = delete(idempotency_keys).where(idempotency_keys.c.expires_at <= to_db(now))
        result = await self._tx.session.execute(stmt)
        return result.rowcount or 0
