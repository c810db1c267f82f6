from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Index, Integer, MetaData, String, Table, Text

metadata = MetaData()

reservations = Table(
    "reservations",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("resource_id", String(64), nullable=False),
    Column("owner_id", String(64), nullable=False),
    Column("start_time", DateTime, nullable=False),
    Column("end_time", DateTime, nullable=False),
    Column("status", String(16), nullable=False),
    Column("kind", String(16), nullable=False),
    Column("description", Text),
    Column("patient_name", String(255)),
    Column("patient_id", String(64)),
    Column("notes", Text),
    Column("idempotency_key", String(128)),
    Column("version", Integer, nullable=False, default=0),
    Column("created_at", DateTime, nullable=False),
    Column("updated_at", DateTime, nullable=False),
    Index("ix_reservations_resource_status_time", "resource_id", "status", "start_time", "end_time"),
    Index("ix_reservations_owner_time", "owner_id", "start_time"),
    Index("ix_reservations_status_created", "status", "created_at"),
)

resource_counters = Table(
    "resource_counters",
    metadata,
    Column("resource_id", String(64), primary_key=True),
    Column("active_reservations", Integer, nullable=False, default=0),
    Column("updated_at", DateTime, nullable=False),
)

outbox_events = Table(
    "outbox_events",
    metadata,
    Column("event_id", String(36), primary_key=True),
    Column("event_type", String(64), nullable=False),
    Column("aggregate_id", String(36), nullable=False),
    Column("aggregate_type", String(32), nullable=False),
    Column("payload", JSON, nullable=False),
    Column("status", String(16), nullable=False),
    Column("retry_count", Integer, nullable=False, default=0),
    Column("next_retry_at", DateTime),
    Column("processed_at", DateTime),
    Column("error_message", Text),
    Column("locked_by", String(64)),
    Column("locked_at", DateTime),
    Column("created_at", DateTime, nullable=False),
    Column("updated_at", DateTime, nullable=False),
    Index("ix_outbox_status_next_retry", "status", "next_retry_at"),
    Index("ix_outbox_aggregate", "aggregate_id", "created_at"),
)

idempotency_keys = Table(
    "idempotency_keys",
    metadata,
    Column("idem_key", String(128), primary_key=True),
    Column("status", String(16), nullable=False),
    Column("reservation_id", String(36)),
    Column("created_at", DateTime, nullable=False),
    Column("expires_at", DateTime, nullable=False),
    Index("ix_idempotency_expires_at", "expires_at"),
)


def to_db(value: datetime | None) -> datetime | None:
    """Las columnas DateTime guardan UTC naive."""
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def from_db(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
