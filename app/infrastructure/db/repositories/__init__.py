from app.infrastructure.db.repositories.idempotency_repo_sql import IdempotencyRepoSQL
from app.infrastructure.db.repositories.outbox_repo_sql import OutboxRepoSQL
from app.infrastructure.db.repositories.reservation_repo_sql import ReservationRepoSQL
from app.infrastructure.db.repositories.resource_counter_repo_sql import ResourceCounterRepoSQL

__all__ = [
    "IdempotencyRepoSQL",
    "OutboxRepoSQL",
    "ReservationRepoSQL",
    "ResourceCounterRepoSQL",
]
