from datetime import datetime

from app.domain.entities.idempotency_record import IdempotencyRecord


class IdempotencyRepo:
    async def insert_if_absent(self, record: IdempotencyRecord) -> IdempotencyRecord | None:
        """
        Inserta el registro si la clave no existe (restricción única).

        Returns:
            None si se insertó; el registro existente en otro caso.
        """
        raise NotImplementedError

    async def get(self, key: str) -> IdempotencyRecord | None:
        raise NotImplementedError

    async def mark_completed(self, key: str, reservation_id: str) -> None:
        raise NotImplementedError

    async def delete(self, key: str) -> None:
        raise NotImplementedError

    async def delete_if_expired(self, key: str, now: datetime) -> bool:
        raise NotImplementedError

    async def delete_expired(self, now: datetime) -> int:
        raise NotImplementedError
