import pytest

from app.api.dependencies import build_container
from app.config import Settings
from app.infrastructure.gateways.in_memory import (
    StubResourceDirectoryGateway,
    StubStaffAvailabilityGateway,
)


def _sql_settings(**overrides) -> Settings:
    values = {
        "_env_file": None,
        "use_in_memory": False,
        "database_url": "sqlite+aiosqlite:///:memory:",
        "enable_background_workers": False,
        "staff_service_url": "http://staff.local",
        "resource_directory_url": "http://rooms.local",
        "redis_url": None,
    }
    values.update(overrides)
    return Settings(**values)


def test_sql_mode_requires_staff_service_url():
    with pytest.raises(RuntimeError, match="STAFF_SERVICE_URL"):
        build_container(_sql_settings(staff_service_url=None))


def test_sql_mode_requires_resource_directory_url():
    with pytest.raises(RuntimeError, match="RESOURCE_DIRECTORY_URL"):
        build_container(_sql_settings(resource_directory_url=None))


def test_in_memory_mode_falls_back_to_stub_gateways(settings):
    container = build_container(settings)

    assert isinstance(container.staff_gateway, StubStaffAvailabilityGateway)
    assert isinstance(container.resource_gateway, StubResourceDirectoryGateway)
