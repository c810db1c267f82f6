import pytest

from app.domain.errors import InvalidTimeRangeError
from app.domain.value_objects.time_range import TimeRange
from reservation_factories import NOW, at, make_command


@pytest.fixture
def detector(container):
    return container.conflict_detector


class TestValidate:
    def test_accepts_range_starting_now(self, detector):
        detector.validate(TimeRange(NOW, at(9)), NOW)

    def test_rejects_range_in_the_past(self, detector):
        with pytest.raises(InvalidTimeRangeError) as exc_info:
            detector.validate(TimeRange(at(7), at(9)), NOW)
        assert exc_info.value.code == "INVALID_TIME_RANGE"


@pytest.mark.asyncio
class TestFindOverlaps:
    async def test_empty_resource_has_no_conflicts(self, detector):
        assert await detector.find_overlaps("OR-1", TimeRange(at(10), at(11))) == []

    async def test_reports_overlapping_active_reservation(self, detector, ledger):
        booked = await ledger.create(make_command(at(10), at(11)))

        conflicts = await detector.find_overlaps("OR-1", TimeRange(at(10, 30), at(11, 30)))

        assert [c.reservation_id for c in conflicts] == [booked.id]
        assert conflicts[0].owner_id == "surgeon-1"
        assert conflicts[0].start == at(10)

    async def test_touching_boundary_is_not_a_conflict(self, detector, ledger):
        await ledger.create(make_command(at(10), at(11)))
        assert await detector.find_overlaps("OR-1", TimeRange(at(11), at(12))) == []

    async def test_other_resources_are_ignored(self, detector, ledger):
        await ledger.create(make_command(at(10), at(11), resource_id="OR-2"))
        assert await detector.find_overlaps("OR-1", TimeRange(at(10), at(11))) == []

    async def test_cancelled_reservations_do_not_conflict(self, detector, ledger):
        booked = await ledger.create(make_command(at(10), at(11)))
        await ledger.cancel(booked.id)
        assert await detector.find_overlaps("OR-1", TimeRange(at(10), at(11))) == []

    async def test_excluded_reservation_is_skipped(self, detector, ledger):
        booked = await ledger.create(make_command(at(10), at(11)))
        conflicts = await detector.find_overlaps(
            "OR-1", TimeRange(at(10), at(12)), exclude_id=booked.id
        )
        assert conflicts == []
