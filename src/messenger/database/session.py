from functools import lru_cache
from typing import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    create_async_engine,
    async_sessionmaker,
    AsyncSession,
)

from messenger.config import get_settings


def enable_sqlite_savepoints(engine: AsyncEngine) -> AsyncEngine:
    """
    Let SQLAlchemy emit BEGIN itself on SQLite so SAVEPOINT (`begin_nested`) nests
    inside the session's transaction instead of committing on RELEASE.

    The sqlite3 driver otherwise delays BEGIN until the first DML statement.
    No-op for other dialects.
    """
    if engine.dialect.name != "sqlite":
        return engine

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


@lru_cache()
def get_engine() -> AsyncEngine:
    """
    Build the AsyncEngine from settings on first use.

    Nothing connects here; the pool opens connections lazily on the first query.
    """
    settings = get_settings()
    engine = create_async_engine(
        settings.DATABASE_URL,
        echo=settings.SQLALCHEMY_ECHO,   # Keep False in production
        pool_pre_ping=True,              # Enables connection health checks
    )
    return enable_sqlite_savepoints(engine)


@lru_cache()
def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=get_engine(),
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield a session and make sure it's closed once the caller is done.

    Usage:
        async for db in get_async_session():
            repo = ConversationRepository(db)
            ...
            await db.commit()
    """
    async with get_sessionmaker()() as session:
        yield session
