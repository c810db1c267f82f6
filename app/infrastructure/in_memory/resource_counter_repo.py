from app.application.interfaces.resource_counter_repo import ResourceCounterRepo
from app.infrastructure.in_memory.store import InMemoryStore


class InMemoryResourceCounterRepo(ResourceCounterRepo):
    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    async def lock(self, resource_id: str) -> None:
        # Las transacciones ya están serializadas por el store.
        self._store.counters.setdefault(resource_id, 0)

    async def increment(self, resource_id: str) -> None:
        self._store.counters[resource_id] = self._store.counters.get(resource_id, 0) + 1

    async def decrement(self, resource_id: str) -> None:
        self._store.counters[resource_id] = self._store.counters.get(resource_id, 0) - 1

    async def get_active_count(self, resource_id: str) -> int:
        return self._store.counters.get(resource_id, 0)
