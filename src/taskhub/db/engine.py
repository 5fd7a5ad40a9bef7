"""Async SQLAlchemy engine and session factory.

One engine per process owns a bounded connection pool. Each request gets
its own AsyncSession through the get_db dependency, so a connection is
checked out for the lifetime of one request and returned afterwards.

SQLite (used by the test suite and quick local runs) needs foreign keys
switched on per connection for ON DELETE CASCADE to apply.
"""

from typing import AsyncIterator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from taskhub.config import settings


def enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    """Turn on PRAGMA foreign_keys for every new SQLite connection."""

    @event.listens_for(engine.sync_engine, "connect")
    def _set_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def build_engine(url: str, echo: bool = False) -> AsyncEngine:
    """Create an engine for the given URL with the configured pool bounds."""
    if url.startswith("sqlite"):
        engine = create_async_engine(url, echo=echo)
        enable_sqlite_foreign_keys(engine)
        return engine

    return create_async_engine(
        url,
        echo=echo,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=True,
    )


engine = build_engine(settings.database_url, echo=settings.debug)

# Session factory: each request gets its own session.
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency: yields a session per request, auto-closes."""
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()
