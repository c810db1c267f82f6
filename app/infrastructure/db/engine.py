from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.config import Settings
from app.infrastructure.db.tables import metadata


def build_engine(settings: Settings) -> AsyncEngine:
    if not settings.database_url:
        raise RuntimeError("DATABASE_URL is required for SQL mode")

    url = make_url(settings.database_url)
    if url.get_backend_name() == "sqlite":
        options = {}
        if url.database in (None, "", ":memory:"):
            # Una sola conexión compartida: cada conexión nueva sería otra base vacía.
            options = {"poolclass": StaticPool, "connect_args": {"check_same_thread": False}}
        engine = create_async_engine(url, **options)
        _emit_sqlite_begin(engine)
        return engine

    return create_async_engine(
        url,
        pool_pre_ping=True,
        pool_recycle=3600,
    )


def _emit_sqlite_begin(engine: AsyncEngine) -> None:
    """
    El driver sqlite3 abre transacciones por su cuenta y rompe los SAVEPOINT
    que usan los repositorios; se desactiva y SQLAlchemy emite BEGIN.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin(conn):
        conn.exec_driver_sql("BEGIN")


def build_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def create_schema(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
