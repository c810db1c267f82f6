from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Protocol


class TransactionManager(Protocol):
    """
    Unidad de trabajo atómica sobre el almacenamiento.

    Todo lo escrito por los repositorios dentro de `start()` se confirma
    junto o no se confirma. Un `start()` anidado se une a la transacción
    en curso.
    """

    @asynccontextmanager
    async def start(self) -> AsyncIterator[None]:
        yield
