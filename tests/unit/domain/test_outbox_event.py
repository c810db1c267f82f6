from datetime import timedelta

import pytest

from app.domain.entities.outbox_event import (
    OutboxEvent,
    OutboxEventType,
    OutboxStatus,
    compute_backoff,
)
from app.domain.errors import InvalidOutboxStatusError
from reservation_factories import NOW


def _event(event_id: str = "evt-1", reservation_id: str = "res-1", now=NOW) -> OutboxEvent:
    return OutboxEvent.for_reservation(
        event_id=event_id,
        event_type=OutboxEventType.RESERVATION_CREATED,
        reservation_id=reservation_id,
        payload={"reservation_id": "res-1"},
        now=now,
    )


class TestBackoff:
    @pytest.mark.parametrize("retry_count, seconds", [(1, 2), (2, 4), (3, 8)])
    def test_exponential_backoff(self, retry_count, seconds):
        assert compute_backoff(retry_count) == timedelta(seconds=seconds)


class TestOutboxEvent:
    def test_new_event_is_due_immediately(self):
        event = _event()
        assert event.status == OutboxStatus.PENDING
        assert event.is_due(NOW)

    def test_claimed_event_is_not_due(self):
        event = _event()
        event.claim("worker-a", NOW)
        assert event.status == OutboxStatus.PROCESSING
        assert event.locked_by == "worker-a"
        assert not event.is_due(NOW)

    def test_retry_schedules_backoff_until_budget_is_spent(self):
        event = _event()
        event.claim("worker-a", NOW)
        event.mark_retry(NOW, "timeout")
        assert event.status == OutboxStatus.PENDING
        assert event.retry_count == 1
        assert event.next_retry_at == NOW + timedelta(seconds=2)
        assert event.locked_by is None

        event.mark_retry(NOW, "timeout")
        assert event.next_retry_at == NOW + timedelta(seconds=4)

        event.mark_retry(NOW, "timeout")
        assert event.status == OutboxStatus.FAILED
        assert event.retry_count == 3
        assert event.is_final

    def test_manual_retry_requires_failed_status(self):
        event = _event()
        with pytest.raises(InvalidOutboxStatusError):
            event.reset_for_retry(NOW)

    def test_manual_retry_resets_counters(self):
        event = _event()
        for _ in range(3):
            event.mark_retry(NOW, "boom")
        event.reset_for_retry(NOW + timedelta(minutes=1))
        assert event.status == OutboxStatus.PENDING
        assert event.retry_count == 0
        assert event.error_message is None
        assert event.next_retry_at == NOW + timedelta(minutes=1)

    def test_envelope_shape(self):
        envelope = _event().to_envelope()
        assert envelope == {
            "event_id": "evt-1",
            "event_type": "reservation.created",
            "aggregate_id": "res-1",
            "timestamp": NOW.isoformat(),
            "payload": {"reservation_id": "res-1"},
            "schema_version": "1.0",
        }


class TestHoldsBack:
    def test_older_event_in_backoff_holds_back_newer_one(self):
        older = _event()
        newer = _event("evt-2", now=NOW + timedelta(seconds=1))
        older.mark_retry(NOW, "timeout")

        assert older.holds_back(newer, NOW + timedelta(seconds=1))
        assert not older.holds_back(newer, NOW + timedelta(seconds=2))

    def test_processing_and_failed_events_hold_back(self):
        older = _event()
        newer = _event("evt-2", now=NOW + timedelta(seconds=1))
        older.claim("worker-a", NOW)
        assert older.holds_back(newer, NOW)

        for _ in range(3):
            older.mark_retry(NOW, "boom")
        assert older.status == OutboxStatus.FAILED
        assert older.holds_back(newer, NOW + timedelta(hours=1))

    def test_only_older_events_of_same_reservation_hold_back(self):
        event = _event()
        event.claim("worker-a", NOW)

        assert not event.holds_back(_event("evt-2", "res-2", NOW + timedelta(seconds=1)), NOW)
        assert not _event("evt-2", now=NOW + timedelta(seconds=1)).holds_back(event, NOW)
        assert not event.holds_back(event, NOW)

    def test_defer_returns_to_pending_without_counting_attempt(self):
        event = _event()
        event.claim("worker-a", NOW)
        event.defer(NOW)

        assert event.status == OutboxStatus.PENDING
        assert event.retry_count == 0
        assert event.locked_by is None
        assert event.is_due(NOW)
