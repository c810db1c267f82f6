import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from contextvars import ContextVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.application.interfaces.transaction_manager import TransactionManager
from app.domain.errors import StorageError

logger = logging.getLogger(__name__)


class SQLAlchemyTransactionManager(TransactionManager):
    """
    Abre una sesión y una transacción por `start()`.

    La sesión en curso vive en un ContextVar que leen los repositorios;
    un `start()` anidado reutiliza la transacción abierta. Los errores de
    SQLAlchemy se convierten en StorageError.
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]) -> None:
        self._session_maker = session_maker
        self._current: ContextVar[AsyncSession | None] = ContextVar(
            f"sql_session_{id(self)}", default=None
        )

    @property
    def session(self) -> AsyncSession:
        session = self._current.get()
        if session is None:
            raise RuntimeError("No active transaction; wrap repository calls in start()")
        return session

    @asynccontextmanager
    async def start(self) -> AsyncIterator[None]:
        if self._current.get() is not None:
            yield
            return

        try:
            async with self._session_maker() as session:
                async with session.begin():
                    token = self._current.set(session)
                    try:
                        yield
                    finally:
                        self._current.reset(token)
        except SQLAlchemyError as exc:
            logger.error("Storage transaction failed", exc_info=exc)
            raise StorageError(f"Error de persistencia: {exc.__class__.__name__}") from exc
