from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from contextvars import ContextVar

from app.application.interfaces.transaction_manager import TransactionManager
from app.infrastructure.in_memory.store import InMemoryStore


class InMemoryTransactionManager(TransactionManager):
    """
    Transacciones serializadas sobre un InMemoryStore.

    Si el bloque lanza una excepción el store vuelve al snapshot tomado
    al entrar. Un `start()` anidado en la misma tarea se une al actual.
    """

    def __init__(self, store: InMemoryStore) -> None:
        self._store = store
        self._active: ContextVar[bool] = ContextVar(f"in_memory_tx_{id(store)}", default=False)

    @asynccontextmanager
    async def start(self) -> AsyncIterator[None]:
        if self._active.get():
            yield
            return

        async with self._store.lock:
            token = self._active.set(True)
            snapshot = self._store.snapshot()
            try:
                yield
            except BaseException:
                self._store.restore(snapshot)
                raise
            finally:
                self._active.reset(token)
