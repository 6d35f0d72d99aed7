"""
Async SQLAlchemy engine + session dependency.

The engine is built on first use and reused for the lifetime of the process,
so cold-started workers pay the connection-pool setup once.

Usage in FastAPI endpoints:
    async def my_endpoint(db: AsyncSession = Depends(get_db)):
        ...
"""
import logging
from collections.abc import AsyncGenerator
from functools import lru_cache

from sqlalchemy import event, text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from legalms.core.config import get_settings

logger = logging.getLogger(__name__)


def configure_sqlite(engine: AsyncEngine) -> AsyncEngine:
    """
    Enforce foreign keys and let SAVEPOINTs nest properly on SQLite.

    The sqlite3 driver issues its own BEGIN lazily, which breaks
    begin_nested(); take over transaction control instead.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


@lru_cache(maxsize=1)
def get_engine() -> AsyncEngine:
    settings = get_settings()
    url = make_url(settings.database_url)
    kwargs = {"echo": False, "pool_pre_ping": True}
    # SQLite (tests) uses a static pool; pool sizing only applies to server DBs.
    is_sqlite = url.get_backend_name().startswith("sqlite")
    if not is_sqlite:
        kwargs.update(pool_size=10, max_overflow=2, pool_timeout=10)
    logger.info("Creating database engine for %s", url.render_as_string(hide_password=True))
    engine = create_async_engine(url, **kwargs)
    return configure_sqlite(engine) if is_sqlite else engine


@lru_cache(maxsize=1)
def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        get_engine(),
        expire_on_commit=False,
        class_=AsyncSession,
    )


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: yields an async DB session."""
    async with get_sessionmaker()() as session:
        yield session


async def check_db_connection() -> bool:
    """Return True if the database is reachable."""
    try:
        async with get_sessionmaker()() as session:
            await session.execute(text("SELECT 1"))
        return True
    except Exception as exc:
        logger.error("Database health check failed: %s", exc)
        return False
