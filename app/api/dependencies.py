import logging
from dataclasses import dataclass, field
from datetime import timedelta

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine

from app.application.interfaces.availability_gateway import (
    ResourceDirectoryGateway,
    StaffAvailabilityGateway,
)
from app.application.interfaces.clock import Clock, SystemClock
from app.application.interfaces.event_publisher import EventPublisher
from app.application.interfaces.idempotency_repo import IdempotencyRepo
from app.application.interfaces.outbox_repo import OutboxRepo
from app.application.interfaces.reservation_repo import ReservationRepo
from app.application.interfaces.resource_counter_repo import ResourceCounterRepo
from app.application.interfaces.transaction_manager import TransactionManager
from app.application.interfaces.uuid_generator import RealUUIDGenerator, UUIDGenerator
from app.application.services.conflict_detector import ConflictDetector
from app.application.services.expiration_sweeper import ExpirationSweeper
from app.application.services.idempotency_guard import IdempotencyGuard
from app.application.services.outbox_admin import OutboxAdmin
from app.application.services.reservation_ledger import ReservationLedger
from app.config import Settings
from app.infrastructure.circuit_breaker import build_breaker
from app.infrastructure.db.engine import build_engine, build_sessionmaker
from app.infrastructure.db.repositories import (
    IdempotencyRepoSQL,
    OutboxRepoSQL,
    ReservationRepoSQL,
    ResourceCounterRepoSQL,
)
from app.infrastructure.db.transaction_manager import SQLAlchemyTransactionManager
from app.infrastructure.gateways.in_memory import (
    InMemoryEventPublisher,
    StubResourceDirectoryGateway,
    StubStaffAvailabilityGateway,
)
from app.infrastructure.gateways.resource_directory_http import ResourceDirectoryHTTPGateway
from app.infrastructure.gateways.staff_availability_http import StaffAvailabilityHTTPGateway
from app.infrastructure.in_memory import (
    InMemoryIdempotencyRepo,
    InMemoryOutboxRepo,
    InMemoryReservationRepo,
    InMemoryResourceCounterRepo,
    InMemoryStore,
    InMemoryTransactionManager,
)
from app.infrastructure.messaging.outbox_worker import OutboxWorker
from app.infrastructure.messaging.redis_stream_publisher import RedisStreamEventPublisher
from app.infrastructure.scheduling.periodic import PeriodicTask

logger = logging.getLogger(__name__)


@dataclass
class Container:
    """Grafo de objetos del servicio, construido una vez por proceso."""

    settings: Settings
    clock: Clock
    transaction_manager: TransactionManager
    reservation_repo: ReservationRepo
    counter_repo: ResourceCounterRepo
    outbox_repo: OutboxRepo
    idempotency_repo: IdempotencyRepo
    staff_gateway: StaffAvailabilityGateway
    resource_gateway: ResourceDirectoryGateway
    publisher: EventPublisher
    idempotency_guard: IdempotencyGuard
    conflict_detector: ConflictDetector
    ledger: ReservationLedger
    outbox_worker: OutboxWorker
    outbox_admin: OutboxAdmin
    sweeper: ExpirationSweeper
    engine: AsyncEngine | None = None
    tasks: list[PeriodicTask] = field(default_factory=list)

    def build_periodic_tasks(self) -> list[PeriodicTask]:
        settings = self.settings
        self.tasks = [
            PeriodicTask("outbox-publisher", settings.outbox_interval_seconds, self.outbox_worker.run_once),
            PeriodicTask("outbox-cleanup", settings.outbox_cleanup_interval_seconds, self.outbox_worker.cleanup),
            PeriodicTask("expiration-sweep", settings.expiration_interval_seconds, self.sweeper.sweep),
            PeriodicTask("retention-purge", settings.purge_interval_seconds, self.sweeper.purge),
        ]
        return self.tasks

    def start_background_tasks(self) -> None:
        for task in self.build_periodic_tasks():
            task.start()

    async def stop_background_tasks(self) -> None:
        for task in self.tasks:
            await task.stop()

    async def close(self) -> None:
        await self.stop_background_tasks()
        if isinstance(self.publisher, RedisStreamEventPublisher):
            await self.publisher.close()
        if self.engine is not None:
            await self.engine.dispose()


def _require_stub_mode(settings: Settings, variable: str) -> None:
    # Los stubs responden siempre "disponible": solo valen en modo memoria.
    if not settings.use_in_memory:
        raise RuntimeError(f"{variable} is required for SQL mode")
    logger.warning("%s not set; using stub gateway", variable)


def _build_staff_gateway(settings: Settings) -> StaffAvailabilityGateway:
    if not settings.staff_service_url:
        _require_stub_mode(settings, "STAFF_SERVICE_URL")
        return StubStaffAvailabilityGateway()
    return StaffAvailabilityHTTPGateway(
        base_url=settings.staff_service_url,
        timeout_seconds=settings.availability_timeout_seconds,
        breaker=build_breaker(
            "staff", settings.breaker_fail_max, settings.breaker_reset_timeout_seconds
        ),
    )


def _build_resource_gateway(settings: Settings) -> ResourceDirectoryGateway:
    if not settings.resource_directory_url:
        _require_stub_mode(settings, "RESOURCE_DIRECTORY_URL")
        return StubResourceDirectoryGateway()
    return ResourceDirectoryHTTPGateway(
        base_url=settings.resource_directory_url,
        timeout_seconds=settings.availability_timeout_seconds,
        breaker=build_breaker(
            "resource_directory", settings.breaker_fail_max, settings.breaker_reset_timeout_seconds
        ),
    )


def build_container(
    settings: Settings,
    clock: Clock | None = None,
    uuid_generator: UUIDGenerator | None = None,
    staff_gateway: StaffAvailabilityGateway | None = None,
    resource_gateway: ResourceDirectoryGateway | None = None,
    publisher: EventPublisher | None = None,
) -> Container:
    """
    Construye el grafo de objetos según la configuración.

    Los argumentos opcionales permiten a los tests inyectar fakes.
    """
    clock = clock or SystemClock()
    uuid_generator = uuid_generator or RealUUIDGenerator()
    staff_gateway = staff_gateway or _build_staff_gateway(settings)
    resource_gateway = resource_gateway or _build_resource_gateway(settings)
    engine = None

    if settings.use_in_memory:
        store = InMemoryStore()
        transaction_manager: TransactionManager = InMemoryTransactionManager(store)
        reservation_repo: ReservationRepo = InMemoryReservationRepo(store)
        counter_repo: ResourceCounterRepo = InMemoryResourceCounterRepo(store)
        outbox_repo: OutboxRepo = InMemoryOutboxRepo(store)
        idempotency_repo: IdempotencyRepo = InMemoryIdempotencyRepo(store)
    else:
        engine = build_engine(settings)
        sql_tx = SQLAlchemyTransactionManager(build_sessionmaker(engine))
        transaction_manager = sql_tx
        reservation_repo = ReservationRepoSQL(sql_tx)
        counter_repo = ResourceCounterRepoSQL(sql_tx)
        outbox_repo = OutboxRepoSQL(sql_tx)
        idempotency_repo = IdempotencyRepoSQL(sql_tx)

    if publisher is None:
        if settings.redis_url:
            publisher = RedisStreamEventPublisher.from_url(
                settings.redis_url,
                stream_prefix=settings.redis_stream_prefix,
                maxlen=settings.redis_stream_maxlen,
            )
        else:
            logger.warning("REDIS_URL not set; domain events stay in the in-memory bus")
            publisher = InMemoryEventPublisher()

    idempotency_guard = IdempotencyGuard(
        idempotency_repo,
        transaction_manager,
        clock,
        ttl=timedelta(hours=settings.idempotency_ttl_hours),
    )
    conflict_detector = ConflictDetector(reservation_repo, transaction_manager)
    ledger = ReservationLedger(
        transaction_manager=transaction_manager,
        reservation_repo=reservation_repo,
        counter_repo=counter_repo,
        outbox_repo=outbox_repo,
        conflict_detector=conflict_detector,
        idempotency_guard=idempotency_guard,
        staff_gateway=staff_gateway,
        resource_gateway=resource_gateway,
        clock=clock,
        uuid_generator=uuid_generator,
        availability_timeout_seconds=settings.availability_timeout_seconds,
        staff_role=settings.staff_role,
    )
    outbox_worker = OutboxWorker(
        transaction_manager=transaction_manager,
        outbox_repo=outbox_repo,
        publisher=publisher,
        clock=clock,
        batch_size=settings.outbox_batch_size,
        max_retries=settings.outbox_max_retries,
        processing_timeout_seconds=settings.outbox_processing_timeout_seconds,
        publish_timeout_seconds=settings.outbox_publish_timeout_seconds,
        retention_days=settings.outbox_retention_days,
    )
    sweeper = ExpirationSweeper(
        ledger=ledger,
        reservation_repo=reservation_repo,
        idempotency_guard=idempotency_guard,
        transaction_manager=transaction_manager,
        clock=clock,
        pending_timeout_minutes=settings.expiration_timeout_minutes,
        batch_size=settings.expiration_batch_size,
        retention_days=settings.expired_retention_days,
    )

    return Container(
        settings=settings,
        clock=clock,
        transaction_manager=transaction_manager,
        reservation_repo=reservation_repo,
        counter_repo=counter_repo,
        outbox_repo=outbox_repo,
        idempotency_repo=idempotency_repo,
        staff_gateway=staff_gateway,
        resource_gateway=resource_gateway,
        publisher=publisher,
        idempotency_guard=idempotency_guard,
        conflict_detector=conflict_detector,
        ledger=ledger,
        outbox_worker=outbox_worker,
        outbox_admin=OutboxAdmin(transaction_manager, outbox_repo, outbox_worker, clock),
        sweeper=sweeper,
        engine=engine,
    )


def get_container(request: Request) -> Container:
    return request.app.state.container


def get_ledger(request: Request) -> ReservationLedger:
    return get_container(request).ledger


def get_outbox_admin(request: Request) -> OutboxAdmin:
    return get_container(request).outbox_admin
