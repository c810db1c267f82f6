from app.infrastructure.messaging.outbox_worker import OutboxCycleResult, OutboxWorker
from app.infrastructure.messaging.redis_stream_publisher import RedisStreamEventPublisher

__all__ = ["OutboxCycleResult", "OutboxWorker", "RedisStreamEventPublisher"]
