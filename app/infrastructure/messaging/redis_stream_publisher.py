"""Publicación de eventos de dominio en Redis Streams."""

import json
import logging
from typing import Any

import redis.asyncio as aioredis

from app.application.interfaces.event_publisher import EventPublisher

logger = logging.getLogger(__name__)


class RedisStreamEventPublisher(EventPublisher):
    """
    Un stream por tipo de evento (`<prefix><event_type>`).

    Cada entrada lleva el id del agregado en el campo `key` y el sobre
    JSON en `value`; los consumidores ordenan por `key`. Sin `maxlen` el
    stream no se recorta.
    """

    def __init__(
        self,
        redis: aioredis.Redis,
        stream_prefix: str = "or-events:",
        maxlen: int | None = None,
    ) -> None:
        self._redis = redis
        self._stream_prefix = stream_prefix
        self._maxlen = maxlen

    @classmethod
    def from_url(cls, url: str, **kwargs: Any) -> "RedisStreamEventPublisher":
        return cls(aioredis.from_url(url, decode_responses=True), **kwargs)

    def stream_name(self, topic: str) -> str:
        return f"{self._stream_prefix}{topic}"

    async def publish(self, topic: str, key: str, message: dict[str, Any]) -> None:
        entry_id = await self._redis.xadd(
            self.stream_name(topic),
            {"key": key, "value": json.dumps(message, default=str)},
            maxlen=self._maxlen,
            approximate=True,
        )
        logger.debug(
            "Event appended to stream",
            extra={"topic": topic, "key": key, "entry_id": entry_id},
        )

    async def close(self) -> None:
        await self._redis.aclose()
