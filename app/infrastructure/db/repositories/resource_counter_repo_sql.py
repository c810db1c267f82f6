from datetime import datetime, timezone

from sqlalchemy import insert, select, update
from sqlalchemy.exc import IntegrityError

from app.application.interfaces.resource_counter_repo import ResourceCounterRepo
from app.infrastructure.db.tables import resource_counters
from app.infrastructure.db.transaction_manager import SQLAlchemyTransactionManager


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class ResourceCounterRepoSQL(ResourceCounterRepo):
    def __init__(self, transaction_manager: SQLAlchemyTransactionManager) -> None:
        self._tx = transaction_manager

    async def lock(self, resource_id: str) -> None:
        """SELECT ... FOR UPDATE sobre la fila del recurso, creándola si falta."""
        session = self._tx.session
        stmt = (
            select(resource_counters.c.resource_id)
            .where(resource_counters.c.resource_id == resource_id)
            .with_for_update()
        )
        if (await session.execute(stmt)).first() is not None:
            return

        try:
            async with session.begin_nested():
                await session.execute(
                    insert(resource_counters).values(
                        resource_id=resource_id,
                        active_reservations=0,
                        updated_at=_utcnow(),
                    )
                )
        except IntegrityError:
            # Otra transacción creó la fila primero; basta con bloquearla.
            pass
        await session.execute(stmt)

    async def increment(self, resource_id: str) -> None:
        await self._adjust(resource_id, 1)

    async def decrement(self, resource_id: str) -> None:
        await self._adjust(resource_id, -1)

    async def get_active_count(self, resource_id: str) -> int:
        stmt = select(resource_counters.c.active_reservations).where(
            resource_counters.c.resource_id == resource_id
        )
        value = (await self._tx.session.execute(stmt)).scalar_one_or_none()
        return value or 0

    async def _adjust(self, resource_id: str, delta: int) -> None:
        session = self._tx.session
        stmt = (
            update(resource_counters)
            .where(resource_counters.c.resource_id == resource_id)
            .values(
                active_reservations=resource_counters.c.active_reservations + delta,
                updated_at=_utcnow(),
            )
        )
        result = await session.execute(stmt)
        if result.rowcount == 0:
            await session.execute(
                insert(resource_counters).values(
                    resource_id=resource_id,
                    active_reservations=max(delta, 0),
                    updated_at=_utcnow(),
                )
            )
