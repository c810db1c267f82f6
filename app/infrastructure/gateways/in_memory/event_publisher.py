from dataclasses import dataclass
from typing import Any

from app.application.interfaces.event_publisher import EventPublisher


@dataclass
class PublishedMessage:
    topic: str
    key: str
    message: dict[str, Any]


class InMemoryEventPublisher(EventPublisher):
    """Bus en memoria que registra los mensajes publicados."""

    def __init__(self) -> None:
        self.messages: list[PublishedMessage] = []
        self.fail_next: int = 0
        self.error: Exception | None = None

    async def publish(self, topic: str, key: str, message: dict[str, Any]) -> None:
        if self.error is not None:
            raise self.error
        if self.fail_next > 0:
            self.fail_next -= 1
            raise ConnectionError("Message bus unavailable")
        self.messages.append(PublishedMessage(topic=topic, key=key, message=message))

    def by_topic(self, topic: str) -> list[PublishedMessage]:
        return [published for published in self.messages if published.topic == topic]
