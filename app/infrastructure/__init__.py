"""
Capa de Infraestructura - Reservas de quirófanos.

Esta capa contiene las implementaciones concretas de los puertos (interfaces).
Incluye adaptadores para base de datos, servicios externos y bus de mensajes.

Estructura:
- db/: Tablas, engine y repositorios SQLAlchemy
- gateways/: Adaptadores HTTP de staff y directorio de quirófanos, stubs in-memory
- in_memory/: Almacén y repositorios in-memory para testing y desarrollo local
- messaging/: Worker del outbox y publicador en Redis Streams
- scheduling/: Tareas periódicas (outbox, expiración, purga)
"""

# Database
from app.infrastructure.db.repositories import (
    IdempotencyRepoSQL,
    OutboxRepoSQL,
    ReservationRepoSQL,
    ResourceCounterRepoSQL,
)
from app.infrastructure.db.transaction_manager import SQLAlchemyTransactionManager

# Gateways
from app.infrastructure.gateways.in_memory import (
    InMemoryEventPublisher,
    StubResourceDirectoryGateway,
    StubStaffAvailabilityGateway,
)
from app.infrastructure.gateways.resource_directory_http import ResourceDirectoryHTTPGateway
from app.infrastructure.gateways.staff_availability_http import StaffAvailabilityHTTPGateway

# In-Memory (for testing)
from app.infrastructure.in_memory import (
    InMemoryIdempotencyRepo,
    InMemoryOutboxRepo,
    InMemoryReservationRepo,
    InMemoryResourceCounterRepo,
    InMemoryStore,
    InMemoryTransactionManager,
)

# Messaging
from app.infrastructure.messaging.outbox_worker import OutboxCycleResult, OutboxWorker
from app.infrastructure.messaging.redis_stream_publisher import RedisStreamEventPublisher

# Scheduling
from app.infrastructure.scheduling.periodic import PeriodicTask

__all__ = [
    # Database - Repositories SQL
    "IdempotencyRepoSQL",
    "ReservationRepoSQL",
    "ResourceCounterRepoSQL",
    "OutboxRepoSQL",
    "SQLAlchemyTransactionManager",
    # Gateways
    "StaffAvailabilityHTTPGateway",
    "ResourceDirectoryHTTPGateway",
    "StubStaffAvailabilityGateway",
    "StubResourceDirectoryGateway",
    "InMemoryEventPublisher",
    # In-Memory Implementations
    "InMemoryStore",
    "InMemoryIdempotencyRepo",
    "InMemoryReservationRepo",
    "InMemoryResourceCounterRepo",
    "InMemoryOutboxRepo",
    "InMemoryTransactionManager",
    # Messaging
    "OutboxWorker",
    "OutboxCycleResult",
    "RedisStreamEventPublisher",
    # Scheduling
    "PeriodicTask",
]
