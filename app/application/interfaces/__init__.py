"""Interfaces (Puertos) de la capa de aplicación."""

from app.application.interfaces.availability_gateway import (
    ActorAvailability,
    ActorConflict,
    ResourceDirectoryGateway,
    StaffAvailabilityGateway,
)
from app.application.interfaces.clock import Clock, FakeClock, SystemClock
from app.application.interfaces.event_publisher import EventPublisher
from app.application.interfaces.idempotency_repo import IdempotencyRepo
from app.application.interfaces.outbox_repo import OutboxRepo
from app.application.interfaces.reservation_repo import ReservationRepo
from app.application.interfaces.resource_counter_repo import ResourceCounterRepo
from app.application.interfaces.transaction_manager import TransactionManager
from app.application.interfaces.uuid_generator import (
    FakeUUIDGenerator,
    RealUUIDGenerator,
    UUIDGenerator,
)

__all__ = [
    # Repositories
    "IdempotencyRepo",
    "ReservationRepo",
    "ResourceCounterRepo",
    "OutboxRepo",
    # Gateways
    "StaffAvailabilityGateway",
    "ResourceDirectoryGateway",
    "ActorAvailability",
    "ActorConflict",
    "EventPublisher",
    # Infrastructure
    "TransactionManager",
    # Utilities
    "Clock",
    "SystemClock",
    "FakeClock",
    "UUIDGenerator",
    "RealUUIDGenerator",
    "FakeUUIDGenerator",
]
