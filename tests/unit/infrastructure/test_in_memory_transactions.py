import pytest

from app.domain.entities.reservation import Reservation
from app.infrastructure.in_memory import (
    InMemoryReservationRepo,
    InMemoryResourceCounterRepo,
    InMemoryStore,
    InMemoryTransactionManager,
)
from reservation_factories import NOW, at


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


def _reservation(reservation_id: str = "res-1") -> Reservation:
    return Reservation(
        id=reservation_id,
        resource_id="OR-1",
        owner_id="surgeon-1",
        start=at(10),
        end=at(11),
        created_at=NOW,
        updated_at=NOW,
    )


@pytest.mark.asyncio
class TestInMemoryTransactionManager:
    async def test_commit_keeps_changes(self, store):
        tx = InMemoryTransactionManager(store)
        repo = InMemoryReservationRepo(store)

        async with tx.start():
            await repo.add(_reservation())

        assert await repo.get("res-1") is not None

    async def test_error_restores_snapshot(self, store):
        tx = InMemoryTransactionManager(store)
        repo = InMemoryReservationRepo(store)
        counters = InMemoryResourceCounterRepo(store)

        with pytest.raises(RuntimeError):
            async with tx.start():
                await repo.add(_reservation())
                await counters.increment("OR-1")
                raise RuntimeError("fallo a mitad de la transacción")

        assert await repo.get("res-1") is None
        assert await counters.get_active_count("OR-1") == 0

    async def test_nested_start_joins_outer_transaction(self, store):
        tx = InMemoryTransactionManager(store)
        repo = InMemoryReservationRepo(store)

        with pytest.raises(RuntimeError):
            async with tx.start():
                async with tx.start():
                    await repo.add(_reservation())
                raise RuntimeError("rollback del exterior")

        assert await repo.get("res-1") is None

    async def test_returned_entities_are_copies(self, store):
        tx = InMemoryTransactionManager(store)
        repo = InMemoryReservationRepo(store)
        async with tx.start():
            await repo.add(_reservation())

        loaded = await repo.get("res-1")
        loaded.notes = "modificada sin guardar"

        assert (await repo.get("res-1")).notes is None

    async def test_conditional_save_checks_version(self, store):
        repo = InMemoryReservationRepo(store)
        await repo.add(_reservation())
        reservation = await repo.get("res-1")
        reservation.confirm(at(9))

        assert await repo.save(reservation, expected_version=0) is True
        assert await repo.save(reservation, expected_version=0) is False
