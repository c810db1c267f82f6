"""
Capa de Aplicación - Reservas de quirófanos.

Esta capa contiene los servicios de aplicación, DTOs e interfaces (puertos).
Orquesta la lógica de negocio y define los contratos con la infraestructura.

Estructura:
- services/: Ledger de reservas, detector de conflictos, idempotencia y outbox
- dtos/: Data Transfer Objects
- interfaces/: Puertos (contratos para adaptadores)
"""

from app.application.dtos import (
    AvailabilityResult,
    CreateReservationCommand,
    UpdateReservationCommand,
)
from app.application.interfaces import (
    Clock,
    EventPublisher,
    FakeClock,
    FakeUUIDGenerator,
    IdempotencyRepo,
    OutboxRepo,
    RealUUIDGenerator,
    ReservationRepo,
    ResourceCounterRepo,
    ResourceDirectoryGateway,
    StaffAvailabilityGateway,
    SystemClock,
    TransactionManager,
    UUIDGenerator,
)

__all__ = [
    # DTOs
    "CreateReservationCommand",
    "UpdateReservationCommand",
    "AvailabilityResult",
    # Interfaces - Repositories
    "IdempotencyRepo",
    "ReservationRepo",
    "ResourceCounterRepo",
    "OutboxRepo",
    # Interfaces - Gateways
    "StaffAvailabilityGateway",
    "ResourceDirectoryGateway",
    "EventPublisher",
    # Interfaces - Infrastructure
    "TransactionManager",
    # Interfaces - Utilities
    "Clock",
    "SystemClock",
    "FakeClock",
    "UUIDGenerator",
    "RealUUIDGenerator",
    "FakeUUIDGenerator",
]
