from fastapi import APIRouter, Depends, Header, Query, status

from app.api.dependencies import get_ledger
from app.api.schemas.reservations import (
    CheckAvailabilityRequest,
    CheckAvailabilityResponse,
    ConflictResponse,
    CreateReservationRequest,
    ReservationResponse,
    UpdateReservationRequest,
)
from app.application.dtos.reservation_dto import CreateReservationCommand, UpdateReservationCommand
from app.application.services.reservation_ledger import ReservationLedger
from app.domain.value_objects.time_range import TimeRange

router = APIRouter()


@router.post(
    "/reservations",
    response_model=ReservationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_reservation(
    payload: CreateReservationRequest,
    idem_key: str | None = Header(default=None, convert_underscores=False, alias="Idempotency-Key"),
    ledger: ReservationLedger = Depends(get_ledger),
) -> ReservationResponse:
    reservation = await ledger.create(
        CreateReservationCommand(
            resource_id=payload.resource_id,
            owner_id=payload.owner_id,
            start=payload.start,
            end=payload.end,
            kind=payload.kind,
            description=payload.description,
            patient_name=payload.patient_name,
            patient_id=payload.patient_id,
            notes=payload.notes,
            idempotency_key=idem_key or None,
        )
    )
    return ReservationResponse.from_domain(reservation)


@router.post(
    "/reservations/check-availability",
    response_model=CheckAvailabilityResponse,
    status_code=status.HTTP_200_OK,
)
async def check_availability(
    payload: CheckAvailabilityRequest,
    ledger: ReservationLedger = Depends(get_ledger),
) -> CheckAvailabilityResponse:
    result = await ledger.check_availability(
        payload.resource_id,
        TimeRange(payload.start, payload.end),
        owner_id=payload.owner_id,
    )
    return CheckAvailabilityResponse(
        available=result.available,
        conflicts=[ConflictResponse.from_domain(conflict) for conflict in result.conflicts],
        reason=result.reason,
    )


@router.get("/reservations", response_model=list[ReservationResponse])
async def list_reservations(
    resource_id: str | None = Query(default=None),
    owner_id: str | None = Query(default=None),
    ledger: ReservationLedger = Depends(get_ledger),
) -> list[ReservationResponse]:
    reservations = await ledger.list(resource_id=resource_id, owner_id=owner_id)
    return [ReservationResponse.from_domain(reservation) for reservation in reservations]


@router.get("/reservations/{reservation_id}", response_model=ReservationResponse)
async def get_reservation(
    reservation_id: str,
    ledger: ReservationLedger = Depends(get_ledger),
) -> ReservationResponse:
    return ReservationResponse.from_domain(await ledger.get(reservation_id))


@router.patch("/reservations/{reservation_id}", response_model=ReservationResponse)
async def update_reservation(
    reservation_id: str,
    payload: UpdateReservationRequest,
    ledger: ReservationLedger = Depends(get_ledger),
) -> ReservationResponse:
    reservation = await ledger.update(
        reservation_id,
        UpdateReservationCommand(**payload.model_dump(exclude_unset=True)),
    )
    return ReservationResponse.from_domain(reservation)


@router.post("/reservations/{reservation_id}/confirm", response_model=ReservationResponse)
async def confirm_reservation(
    reservation_id: str,
    ledger: ReservationLedger = Depends(get_ledger),
) -> ReservationResponse:
    return ReservationResponse.from_domain(await ledger.confirm(reservation_id))


@router.delete("/reservations/{reservation_id}", response_model=ReservationResponse)
async def cancel_reservation(
    reservation_id: str,
    reason: str | None = Query(default=None, max_length=500),
    cancelled_by: str | None = Header(default=None, convert_underscores=False, alias="X-User-Id"),
    ledger: ReservationLedger = Depends(get_ledger),
) -> ReservationResponse:
    reservation = await ledger.cancel(
        reservation_id, reason=reason, cancelled_by=cancelled_by or "system"
    )
    return ReservationResponse.from_domain(reservation)
