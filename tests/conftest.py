"""
Pytest configuration and shared fixtures.

Este módulo provee fixtures reutilizables para:
- Contenedor de dependencias in-memory con reloj fijo
- Gateways stub y bus de mensajes en memoria
- Cliente HTTP de prueba (FastAPI TestClient)
"""

from typing import Generator

import pytest
from fastapi.testclient import TestClient

from app.api.dependencies import Container, build_container
from app.application.interfaces.clock import FakeClock
from app.application.interfaces.uuid_generator import FakeUUIDGenerator
from app.config import Settings
from app.infrastructure.gateways.in_memory import (
    InMemoryEventPublisher,
    StubResourceDirectoryGateway,
    StubStaffAvailabilityGateway,
)
from app.main import create_app
from reservation_factories import NOW


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        use_in_memory=True,
        enable_background_workers=False,
        staff_service_url=None,
        resource_directory_url=None,
        redis_url=None,
        availability_timeout_seconds=0.5,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(NOW)


@pytest.fixture
def staff_gateway() -> StubStaffAvailabilityGateway:
    return StubStaffAvailabilityGateway()


@pytest.fixture
def resource_gateway() -> StubResourceDirectoryGateway:
    return StubResourceDirectoryGateway()


@pytest.fixture
def publisher() -> InMemoryEventPublisher:
    return InMemoryEventPublisher()


@pytest.fixture
def container(settings, clock, staff_gateway, resource_gateway, publisher) -> Container:
    return build_container(
        settings,
        clock=clock,
        uuid_generator=FakeUUIDGenerator(),
        staff_gateway=staff_gateway,
        resource_gateway=resource_gateway,
        publisher=publisher,
    )


@pytest.fixture
def ledger(container):
    return container.ledger


@pytest.fixture
def client(settings, container) -> Generator[TestClient, None, None]:
    """FastAPI TestClient sobre el contenedor in-memory de la prueba."""
    with TestClient(create_app(settings, container)) as test_client:
        yield test_client
