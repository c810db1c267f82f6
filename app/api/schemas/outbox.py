from datetime import datetime
from typing import Any

from pydantic import BaseModel

from app.domain.entities.outbox_event import OutboxEvent, OutboxStatus


class OutboxEventResponse(BaseModel):
    event_id: str
    event_type: str
    aggregate_id: str
    aggregate_type: str
    payload: dict[str, Any]
    status: OutboxStatus
    retry_count: int
    next_retry_at: datetime | None = None
    processed_at: datetime | None = None
    error_message: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_domain(cls, event: OutboxEvent) -> "OutboxEventResponse":
        return cls(
            event_id=event.event_id,
            event_type=event.event_type_value,
            aggregate_id=event.aggregate_id,
            aggregate_type=event.aggregate_type_value,
            payload=event.payload,
            status=event.status,
            retry_count=event.retry_count,
            next_retry_at=event.next_retry_at,
            processed_at=event.processed_at,
            error_message=event.error_message,
            created_at=event.created_at,
            updated_at=event.updated_at,
        )


class OutboxStatsResponse(BaseModel):
    pending: int = 0
    processing: int = 0
    completed: int = 0
    failed: int = 0


class OutboxCycleResponse(BaseModel):
    reclaimed: int
    claimed: int
    completed: int
    retried: int
    failed: int
    deferred: int = 0
