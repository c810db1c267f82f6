"""Fixtures de integración sobre SQLite en memoria (aiosqlite)."""

import pytest

from app.api.dependencies import build_container
from app.application.interfaces.uuid_generator import FakeUUIDGenerator
from app.config import Settings
from app.infrastructure.db.engine import create_schema


@pytest.fixture
def sql_settings() -> Settings:
    return Settings(
        _env_file=None,
        use_in_memory=False,
        database_url="sqlite+aiosqlite:///:memory:",
        enable_background_workers=False,
        staff_service_url=None,
        resource_directory_url=None,
        redis_url=None,
        availability_timeout_seconds=0.5,
    )


@pytest.fixture
async def sql_container(sql_settings, clock, staff_gateway, resource_gateway, publisher):
    container = build_container(
        sql_settings,
        clock=clock,
        uuid_generator=FakeUUIDGenerator(),
        staff_gateway=staff_gateway,
        resource_gateway=resource_gateway,
        publisher=publisher,
    )
    await create_schema(container.engine)
    yield container
    await container.engine.dispose()
