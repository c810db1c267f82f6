"""Comportamiento de los repositorios SQL y del gestor de transacciones."""

from datetime import timedelta

import pytest

from app.domain.entities.idempotency_record import IdempotencyRecord
from app.domain.entities.outbox_event import OutboxEvent, OutboxEventType, OutboxStatus
from app.domain.entities.reservation import Reservation
from app.domain.errors import StorageError
from app.domain.value_objects.time_range import TimeRange
from reservation_factories import NOW, at


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


def _event(event_id: str = "evt-1", now=NOW) -> OutboxEvent:
    return OutboxEvent.for_reservation(
        event_id=event_id,
        event_type=OutboxEventType.RESERVATION_CREATED,
        reservation_id="res-1",
        payload={"reservation_id": "res-1"},
        now=now,
    )


@pytest.mark.asyncio
class TestSQLTransactionManager:
    async def test_repository_outside_transaction_is_an_error(self, sql_container):
        with pytest.raises(RuntimeError):
            await sql_container.reservation_repo.get("res-1")

    async def test_exception_rolls_back_everything(self, sql_container):
        tx = sql_container.transaction_manager
        with pytest.raises(ValueError):
            async with tx.start():
                await sql_container.reservation_repo.add(_reservation())
                await sql_container.counter_repo.increment("OR-1")
                await sql_container.outbox_repo.enqueue(_event())
                raise ValueError("fallo antes del commit")

        async with tx.start():
            assert await sql_container.reservation_repo.get("res-1") is None
            assert await sql_container.counter_repo.get_active_count("OR-1") == 0
            assert await sql_container.outbox_repo.get("evt-1") is None

    async def test_database_errors_become_storage_errors(self, sql_container):
        tx = sql_container.transaction_manager
        async with tx.start():
            await sql_container.reservation_repo.add(_reservation())

        with pytest.raises(StorageError):
            async with tx.start():
                await sql_container.reservation_repo.add(_reservation())


@pytest.mark.asyncio
class TestReservationRepoSQL:
    async def test_conditional_save(self, sql_container):
        tx = sql_container.transaction_manager
        repo = sql_container.reservation_repo
        async with tx.start():
            await repo.add(_reservation())

        async with tx.start():
            reservation = await repo.get("res-1")
            reservation.confirm(at(9))
            assert await repo.save(reservation, expected_version=0) is True
            assert await repo.save(reservation, expected_version=0) is False

    async def test_overlap_query_uses_half_open_ranges(self, sql_container):
        tx = sql_container.transaction_manager
        repo = sql_container.reservation_repo
        async with tx.start():
            await repo.add(_reservation())
            touching = await repo.find_active_overlapping("OR-1", TimeRange(at(11), at(12)))
            inside = await repo.find_active_overlapping("OR-1", TimeRange(at(10, 15), at(10, 45)))
            excluded = await repo.find_active_overlapping(
                "OR-1", TimeRange(at(10), at(11)), exclude_id="res-1"
            )

        assert touching == []
        assert [r.id for r in inside] == ["res-1"]
        assert excluded == []


@pytest.mark.asyncio
class TestResourceCounterRepoSQL:
    async def test_lock_creates_missing_row(self, sql_container):
        tx = sql_container.transaction_manager
        counters = sql_container.counter_repo
        async with tx.start():
            await counters.lock("OR-7")
            await counters.lock("OR-7")
            await counters.increment("OR-7")

        async with tx.start():
            assert await counters.get_active_count("OR-7") == 1


@pytest.mark.asyncio
class TestIdempotencyRepoSQL:
    async def test_insert_if_absent_returns_existing(self, sql_container):
        tx = sql_container.transaction_manager
        repo = sql_container.idempotency_repo
        async with tx.start():
            assert await repo.insert_if_absent(IdempotencyRecord.start("key-1", NOW)) is None
            existing = await repo.insert_if_absent(IdempotencyRecord.start("key-1", NOW))
            # la transacción sigue usable tras el SAVEPOINT revertido
            await repo.mark_completed("key-1", "res-1")

        assert existing is not None
        assert existing.key == "key-1"
        async with tx.start():
            stored = await repo.get("key-1")
        assert stored.is_resolved
        assert stored.reservation_id == "res-1"


@pytest.mark.asyncio
class TestOutboxRepoSQL:
    async def test_claim_is_conditional(self, sql_container):
        tx = sql_container.transaction_manager
        repo = sql_container.outbox_repo
        async with tx.start():
            await repo.enqueue(_event())

        async with tx.start():
            first = await repo.claim_due(NOW, 10, "worker-a")
        async with tx.start():
            second = await repo.claim_due(NOW, 10, "worker-b")

        assert [e.event_id for e in first] == ["evt-1"]
        assert first[0].status == OutboxStatus.PROCESSING
        assert first[0].locked_by == "worker-a"
        assert second == []

    async def test_only_owner_can_complete(self, sql_container):
        tx = sql_container.transaction_manager
        repo = sql_container.outbox_repo
        async with tx.start():
            await repo.enqueue(_event())
            await repo.claim_due(NOW, 10, "worker-a")

        async with tx.start():
            assert await repo.mark_completed("evt-1", "worker-b", NOW) is False
            assert await repo.mark_completed("evt-1", "worker-a", NOW) is True
            event = await repo.get("evt-1")

        assert event.status == OutboxStatus.COMPLETED
        assert event.processed_at == NOW
        assert event.locked_by is None

    async def test_reclaim_and_reset_failed(self, sql_container, clock):
        tx = sql_container.transaction_manager
        repo = sql_container.outbox_repo
        async with tx.start():
            await repo.enqueue(_event())
            await repo.claim_due(NOW, 10, "worker-a")

        clock.advance(minutes=6)
        async with tx.start():
            assert await repo.reclaim_stuck(NOW + timedelta(minutes=1), clock.now()) == 1
            await repo.claim_due(clock.now(), 10, "worker-b")
            assert await repo.mark_failed("evt-1", "worker-b", 3, "bus down", clock.now()) is True
            assert await repo.reset_failed("evt-1", clock.now()) is True
            assert await repo.reset_failed("evt-1", clock.now()) is False
            event = await repo.get("evt-1")
            counts = await repo.count_by_status()

        assert event.status == OutboxStatus.PENDING
        assert event.retry_count == 0
        assert event.error_message is None
        assert counts == {OutboxStatus.PENDING: 1}

    async def test_delete_completed_before(self, sql_container):
        tx = sql_container.transaction_manager
        repo = sql_container.outbox_repo
        async with tx.start():
            await repo.enqueue(_event())
            await repo.claim_due(NOW, 10, "worker-a")
            await repo.mark_completed("evt-1", "worker-a", NOW)

        async with tx.start():
            assert await repo.delete_completed_before(NOW) == 0
            assert await repo.delete_completed_before(NOW + timedelta(seconds=1)) == 1

    async def test_failed_event_holds_back_later_events_of_same_reservation(self, sql_container):
        tx = sql_container.transaction_manager
        repo = sql_container.outbox_repo
        async with tx.start():
            await repo.enqueue(_event("evt-1"))
            await repo.enqueue(_event("evt-2", now=NOW + timedelta(seconds=1)))
            await repo.claim_due(NOW, 10, "worker-a")
            await repo.mark_failed("evt-1", "worker-a", 3, "bus down", NOW)

        later = NOW + timedelta(seconds=5)
        async with tx.start():
            assert await repo.claim_due(later, 10, "worker-a") == []
            await repo.reset_failed("evt-1", later)
            claimed = await repo.claim_due(later, 10, "worker-a")

        assert [e.event_id for e in claimed] == ["evt-1", "evt-2"]

    async def test_defer_returns_event_without_counting_attempt(self, sql_container):
        tx = sql_container.transaction_manager
        repo = sql_container.outbox_repo
        async with tx.start():
            await repo.enqueue(_event())
            await repo.claim_due(NOW, 10, "worker-a")

        async with tx.start():
            assert await repo.defer("evt-1", "worker-b", NOW) is False
            assert await repo.defer("evt-1", "worker-a", NOW) is True
            event = await repo.get("evt-1")

        assert event.status == OutboxStatus.PENDING
        assert event.retry_count == 0
        assert event.locked_by is None
