"""ReservationLedger - máquina de estados de las reservas de quirófano."""

import asyncio
import logging
from datetime import datetime
from typing import Any, Awaitable, TypeVar

from app.application.dtos.reservation_dto import (
    AvailabilityResult,
    CreateReservationCommand,
    UpdateReservationCommand,
)
from app.application.interfaces.availability_gateway import (
    ResourceDirectoryGateway,
    StaffAvailabilityGateway,
)
from app.application.interfaces.clock import Clock
from app.application.interfaces.outbox_repo import OutboxRepo
from app.application.interfaces.reservation_repo import ReservationRepo
from app.application.interfaces.resource_counter_repo import ResourceCounterRepo
from app.application.interfaces.transaction_manager import TransactionManager
from app.application.interfaces.uuid_generator import UUIDGenerator
from app.application.services.conflict_detector import ConflictDetector
from app.application.services.idempotency_guard import IdempotencyGuard
from app.domain.entities.outbox_event import OutboxEvent, OutboxEventType
from app.domain.entities.reservation import Reservation, ReservationStatus
from app.domain.errors import (
    IdempotencyInProgressError,
    InvalidStatusTransitionError,
    ReservationConflictError,
    ReservationNotFoundError,
    StaleReservationError,
    UnavailableError,
)
from app.domain.value_objects.time_range import TimeRange

logger = logging.getLogger(__name__)

T = TypeVar("T")

STAFF_DEPENDENCY = "staff-availability"
RESOURCE_DEPENDENCY = "resource-directory"


class ReservationLedger:
    """
    Dueño del ciclo de vida de una reserva.

    Estados: pending (inicial), confirmed, cancelled (terminal) y
    expired (terminal). Cada escritura es condicional sobre (id, version)
    y se confirma en una sola transacción junto con el contador del
    recurso, el evento de outbox y la resolución de idempotencia.
    """

    def __init__(
        self,
        transaction_manager: TransactionManager,
        reservation_repo: ReservationRepo,
        counter_repo: ResourceCounterRepo,
        outbox_repo: OutboxRepo,
        conflict_detector: ConflictDetector,
        idempotency_guard: IdempotencyGuard,
        staff_gateway: StaffAvailabilityGateway,
        resource_gateway: ResourceDirectoryGateway,
        clock: Clock,
        uuid_generator: UUIDGenerator,
        availability_timeout_seconds: float = 5.0,
        staff_role: str = "surgeon",
    ) -> None:
        self._transaction_manager = transaction_manager
        self._reservation_repo = reservation_repo
        self._counter_repo = counter_repo
        self._outbox_repo = outbox_repo
        self._conflict_detector = conflict_detector
        self._idempotency_guard = idempotency_guard
        self._staff_gateway = staff_gateway
        self._resource_gateway = resource_gateway
        self._clock = clock
        self._uuid_generator = uuid_generator
        self._availability_timeout = availability_timeout_seconds
        self._staff_role = staff_role

    # === Lecturas ===

    async def get(self, reservation_id: str) -> Reservation:
        async with self._transaction_manager.start():
            reservation = await self._reservation_repo.get(reservation_id)
        if reservation is None:
            raise ReservationNotFoundError(reservation_id)
        return reservation

    async def list(
        self,
        resource_id: str | None = None,
        owner_id: str | None = None,
    ) -> list[Reservation]:
        async with self._transaction_manager.start():
            reservations = await self._reservation_repo.list(
                resource_id=resource_id, owner_id=owner_id
            )
        return sorted(reservations, key=lambda r: (r.start, r.id))

    async def check_availability(
        self,
        resource_id: str,
        time_range: TimeRange,
        owner_id: str | None = None,
    ) -> AvailabilityResult:
        """
        Consulta de solo lectura.

        Si se indica `owner_id` también consulta al servicio de staff; un
        error o timeout se reporta como no disponible sin lanzar excepción.
        """
        conflicts = await self._conflict_detector.find_overlaps(resource_id, time_range)
        if conflicts:
            return AvailabilityResult(
                available=False,
                conflicts=conflicts,
                reason="El recurso ya está reservado en ese horario",
            )

        if owner_id is not None:
            try:
                await self._ensure_staff_available(owner_id, time_range)
            except UnavailableError as exc:
                return AvailabilityResult(available=False, reason=exc.message)

        return AvailabilityResult(available=True)

    # === Escrituras ===

    async def create(self, command: CreateReservationCommand) -> Reservation:
        now = self._clock.now()
        time_range = TimeRange(command.start, command.end)
        self._conflict_detector.validate(time_range, now)

        idem_key = command.idempotency_key
        if idem_key:
            admission = await self._idempotency_guard.begin(idem_key)
            if admission.is_in_progress:
                raise IdempotencyInProgressError(idem_key)
            if admission.is_resolved:
                logger.info(
                    "Idempotent replay of reservation",
                    extra={"idem_key": idem_key, "reservation_id": admission.reservation_id},
                )
                return await self.get(admission.reservation_id)

        try:
            reservation = await self._book(command, time_range, now)
        except Exception:
            if idem_key:
                await self._idempotency_guard.discard(idem_key)
            raise

        logger.info(
            "Reservation created",
            extra={
                "reservation_id": reservation.id,
                "resource_id": reservation.resource_id,
                "owner_id": reservation.owner_id,
            },
        )
        return reservation

    async def _book(
        self,
        command: CreateReservationCommand,
        time_range: TimeRange,
        now: datetime,
    ) -> Reservation:
        await self._ensure_available(command.resource_id, command.owner_id, time_range)
        await self._ensure_no_conflicts(command.resource_id, time_range)

        reservation = Reservation(
            id=self._uuid_generator.generate_uuid(),
            resource_id=command.resource_id,
            owner_id=command.owner_id,
            start=time_range.start,
            end=time_range.end,
            status=ReservationStatus.PENDING,
            kind=command.kind,
            description=command.description,
            patient_name=command.patient_name,
            patient_id=command.patient_id,
            notes=command.notes,
            idempotency_key=command.idempotency_key,
            version=0,
            created_at=now,
            updated_at=now,
        )

        async with self._transaction_manager.start():
            await self._counter_repo.lock(reservation.resource_id)
            await self._ensure_no_conflicts(reservation.resource_id, time_range)
            await self._reservation_repo.add(reservation)
            await self._counter_repo.increment(reservation.resource_id)
            await self._stage_event(OutboxEventType.RESERVATION_CREATED, reservation, now)
            if command.idempotency_key:
                await self._idempotency_guard.resolve(command.idempotency_key, reservation.id)

        return reservation

    async def update(self, reservation_id: str, command: UpdateReservationCommand) -> Reservation:
        now = self._clock.now()
        reservation = await self.get(reservation_id)
        reservation.ensure_mutable()

        expected_version = reservation.version
        if command.expected_version is not None and command.expected_version != expected_version:
            raise StaleReservationError(reservation_id, command.expected_version, expected_version)

        previous_status = reservation.status
        previous_resource = reservation.resource_id
        target_resource = command.resource_id or reservation.resource_id
        target_owner = command.owner_id or reservation.owner_id
        target_range = TimeRange(command.start or reservation.start, command.end or reservation.end)

        reschedules = (
            target_resource != reservation.resource_id
            or target_owner != reservation.owner_id
            or target_range != reservation.time_range
        )

        fields: dict[str, Any] = command.descriptive_fields()
        if command.status is not None and command.status != reservation.status:
            if not (
                reservation.status == ReservationStatus.PENDING
                and command.status == ReservationStatus.CONFIRMED
            ):
                raise InvalidStatusTransitionError(
                    reservation_id, reservation.status.value, command.status.value
                )
            fields["status"] = command.status

        if reschedules:
            self._conflict_detector.validate(target_range, now)
            await self._ensure_available(target_resource, target_owner, target_range)
            await self._ensure_no_conflicts(target_resource, target_range, exclude_id=reservation_id)

        async with self._transaction_manager.start():
            if reschedules:
                await self._counter_repo.lock(target_resource)
                await self._ensure_no_conflicts(
                    target_resource, target_range, exclude_id=reservation_id
                )

            reservation.reschedule(
                now,
                resource_id=target_resource,
                owner_id=target_owner,
                time_range=target_range,
                **fields,
            )
            await self._save(reservation, expected_version)

            if target_resource != previous_resource:
                await self._counter_repo.decrement(previous_resource)
                await self._counter_repo.increment(target_resource)

            await self._stage_event(
                OutboxEventType.RESERVATION_UPDATED,
                reservation,
                now,
                previous_status=previous_status.value,
            )

        logger.info(
            "Reservation updated",
            extra={"reservation_id": reservation_id, "version": reservation.version},
        )
        return reservation

    async def confirm(self, reservation_id: str) -> Reservation:
        return await self.update(
            reservation_id, UpdateReservationCommand(status=ReservationStatus.CONFIRMED)
        )

    async def cancel(
        self,
        reservation_id: str,
        reason: str | None = None,
        cancelled_by: str = "system",
    ) -> Reservation:
        now = self._clock.now()
        async with self._transaction_manager.start():
            reservation = await self._load(reservation_id)
            expected_version = reservation.version
            reservation.cancel(now, reason)
            await self._save(reservation, expected_version)
            await self._counter_repo.decrement(reservation.resource_id)
            await self._stage_event(
                OutboxEventType.RESERVATION_CANCELLED,
                reservation,
                now,
                reason=reason,
                cancelled_by=cancelled_by,
                cancelled_at=now.isoformat(),
            )

        logger.info(
            "Reservation cancelled",
            extra={"reservation_id": reservation_id, "cancelled_by": cancelled_by},
        )
        return reservation

    async def expire(self, reservation_id: str, now: datetime | None = None) -> Reservation:
        """Transición pending -> expired disparada por el barrido del sistema."""
        now = now or self._clock.now()
        async with self._transaction_manager.start():
            reservation = await self._load(reservation_id)
            expected_version = reservation.version
            reservation.expire(now)
            await self._save(reservation, expected_version)
            await self._counter_repo.decrement(reservation.resource_id)
            await self._stage_event(
                OutboxEventType.RESERVATION_EXPIRED,
                reservation,
                now,
                expired_at=now.isoformat(),
            )

        logger.info("Reservation expired", extra={"reservation_id": reservation_id})
        return reservation

    # === Helpers ===

    async def _load(self, reservation_id: str) -> Reservation:
        reservation = await self._reservation_repo.get(reservation_id)
        if reservation is None:
            raise ReservationNotFoundError(reservation_id)
        return reservation

    async def _save(self, reservation: Reservation, expected_version: int) -> None:
        saved = await self._reservation_repo.save(reservation, expected_version)
        if not saved:
            current = await self._reservation_repo.get(reservation.id)
            raise StaleReservationError(
                reservation.id,
                expected_version,
                current.version if current else None,
            )

    async def _stage_event(
        self,
        event_type: OutboxEventType,
        reservation: Reservation,
        now: datetime,
        **extra_payload: Any,
    ) -> None:
        payload = reservation.to_event_payload()
        payload.update(extra_payload)
        event = OutboxEvent.for_reservation(
            event_id=self._uuid_generator.generate_uuid(),
            event_type=event_type,
            reservation_id=reservation.id,
            payload=payload,
            now=now,
        )
        await self._outbox_repo.enqueue(event)

    async def _ensure_no_conflicts(
        self,
        resource_id: str,
        time_range: TimeRange,
        exclude_id: str | None = None,
    ) -> None:
        conflicts = await self._conflict_detector.find_overlaps(
            resource_id, time_range, exclude_id=exclude_id
        )
        if conflicts:
            raise ReservationConflictError(
                resource_id, [conflict.reservation_id for conflict in conflicts]
            )

    async def _ensure_available(self, resource_id: str, owner_id: str, time_range: TimeRange) -> None:
        await self._ensure_staff_available(owner_id, time_range)

        usable = await self._bounded(
            RESOURCE_DEPENDENCY,
            self._resource_gateway.is_resource_usable(resource_id),
        )
        if not usable:
            logger.warning(
                "Resource rejected by directory",
                extra={"resource_id": resource_id},
            )
            raise UnavailableError(
                RESOURCE_DEPENDENCY,
                f"el recurso {resource_id} no existe, está inactivo o en mantenimiento",
            )

    async def _ensure_staff_available(self, owner_id: str, time_range: TimeRange) -> None:
        availability = await self._bounded(
            STAFF_DEPENDENCY,
            self._staff_gateway.get_actor_availability(owner_id, time_range, self._staff_role),
        )
        if not availability.available:
            logger.warning(
                "Actor not available",
                extra={"owner_id": owner_id, "reason": availability.reason},
            )
            raise UnavailableError(
                STAFF_DEPENDENCY,
                availability.reason or f"{owner_id} no está disponible en {time_range}",
            )

    async def _bounded(self, dependency: str, call: Awaitable[T]) -> T:
        """Acota una llamada externa con timeout; cualquier fallo se trata como no disponible."""
        try:
            return await asyncio.wait_for(call, timeout=self._availability_timeout)
        except asyncio.TimeoutError as exc:
            logger.warning(
                "Availability check timed out",
                extra={"dependency": dependency, "timeout": self._availability_timeout},
            )
            raise UnavailableError(dependency, "timeout") from exc
        except UnavailableError:
            raise
        except Exception as exc:
            logger.warning(
                "Availability check failed",
                exc_info=exc,
                extra={"dependency": dependency},
            )
            raise UnavailableError(dependency, str(exc) or exc.__class__.__name__) from exc
