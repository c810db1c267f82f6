"""Gateways in-memory para testing y desarrollo local."""

from app.infrastructure.gateways.in_memory.availability import (
    StubResourceDirectoryGateway,
    StubStaffAvailabilityGateway,
)
from app.infrastructure.gateways.in_memory.event_publisher import (
    InMemoryEventPublisher,
    PublishedMessage,
)

__all__ = [
    "StubStaffAvailabilityGateway",
    "StubResourceDirectoryGateway",
    "InMemoryEventPublisher",
    "PublishedMessage",
]
