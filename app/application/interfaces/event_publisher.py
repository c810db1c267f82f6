from typing import Any, Protocol


class EventPublisher(Protocol):
    """
    Primitiva de publicación at-least-once del bus de mensajes.

    Un topic por tipo de evento; `key` es el id del agregado y fija el
    orden de entrega para una misma reserva.
    """

    async def publish(self, topic: str, key: str, message: dict[str, Any]) -> None:
        ...
