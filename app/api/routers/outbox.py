from dataclasses import asdict

from fastapi import APIRouter, Depends, Query, status

from app.api.dependencies import get_outbox_admin
from app.api.schemas.outbox import OutboxCycleResponse, OutboxEventResponse, OutboxStatsResponse
from app.application.services.outbox_admin import OutboxAdmin

router = APIRouter()


@router.get("/outbox/stats", response_model=OutboxStatsResponse)
async def outbox_stats(admin: OutboxAdmin = Depends(get_outbox_admin)) -> OutboxStatsResponse:
    return OutboxStatsResponse(**await admin.stats())


@router.get("/outbox/failed", response_model=list[OutboxEventResponse])
async def failed_events(
    limit: int = Query(default=100, ge=1, le=1000),
    admin: OutboxAdmin = Depends(get_outbox_admin),
) -> list[OutboxEventResponse]:
    events = await admin.list_failed(limit)
    return [OutboxEventResponse.from_domain(event) for event in events]


@router.post(
    "/outbox/retry/{event_id}",
    response_model=OutboxEventResponse,
    status_code=status.HTTP_200_OK,
)
async def retry_failed_event(
    event_id: str,
    admin: OutboxAdmin = Depends(get_outbox_admin),
) -> OutboxEventResponse:
    """Vuelve a poner en cola un evento FAILED."""
    return OutboxEventResponse.from_domain(await admin.retry_failed(event_id))


@router.post("/outbox/process", response_model=OutboxCycleResponse)
async def process_outbox(admin: OutboxAdmin = Depends(get_outbox_admin)) -> OutboxCycleResponse:
    """Ejecuta un ciclo del publicador sin esperar al siguiente tick."""
    result = await admin.process_now()
    return OutboxCycleResponse(**asdict(result))
