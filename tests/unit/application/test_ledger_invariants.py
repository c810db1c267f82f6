"""Secuencias aleatorias (con semilla) de create/update/cancel sobre el ledger."""

import random
from datetime import timedelta

import pytest

from app.application.dtos.reservation_dto import UpdateReservationCommand
from app.domain.errors import DomainError
from reservation_factories import at, make_command

RESOURCES = ["OR-1", "OR-2", "OR-3"]
OWNERS = ["surgeon-1", "surgeon-2", "surgeon-3", "surgeon-4"]


def _random_slot(rng: random.Random):
    start = at(9) + timedelta(minutes=15 * rng.randint(0, 40))
    return start, start + timedelta(minutes=15 * rng.randint(1, 8))


async def _assert_no_overlaps(ledger, container):
    for resource_id in RESOURCES:
        active = [r for r in await ledger.list(resource_id=resource_id) if r.is_active]
        for i, first in enumerate(active):
            for second in active[i + 1:]:
                assert not first.time_range.overlaps_with(second.time_range), (
                    f"{first.id} y {second.id} se solapan en {resource_id}"
                )
        assert await container.counter_repo.get_active_count(resource_id) == len(active)


@pytest.mark.asyncio
@pytest.mark.parametrize("seed", [7, 42, 1234])
async def test_active_reservations_never_overlap(ledger, container, seed):
    rng = random.Random(seed)
    created: list[str] = []

    for _ in range(120):
        operation = rng.choice(["create", "create", "update", "cancel", "confirm"])
        try:
            if operation == "create" or not created:
                start, end = _random_slot(rng)
                reservation = await ledger.create(
                    make_command(start, end, resource_id=rng.choice(RESOURCES), owner_id=rng.choice(OWNERS))
                )
                created.append(reservation.id)
            elif operation == "update":
                start, end = _random_slot(rng)
                patch = UpdateReservationCommand(start=start, end=end)
                if rng.random() < 0.3:
                    patch.resource_id = rng.choice(RESOURCES)
                await ledger.update(rng.choice(created), patch)
            elif operation == "cancel":
                await ledger.cancel(rng.choice(created))
            else:
                await ledger.confirm(rng.choice(created))
        except DomainError:
            pass

        await _assert_no_overlaps(ledger, container)

    assert created
