"""
Async engine and session factory.

PostgreSQL (asyncpg) is the production store. SQLite (aiosqlite) is
supported for local runs and tests; its transactions are started with
BEGIN IMMEDIATE so that concurrent reservations serialize on the write
lock the same way they serialize on the event row lock in PostgreSQL.
"""

from functools import lru_cache
from typing import AsyncGenerator, Optional

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from booking_core.core.config import Settings, get_settings


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def enable_sqlite_immediate_transactions(engine: AsyncEngine) -> None:
    """Let SQLAlchemy own BEGIN and take the write lock up front."""

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(url: str, settings: Optional[Settings] = None) -> AsyncEngine:
    settings = settings or get_settings()

    if _is_sqlite(url):
        engine = create_async_engine(
            url,
            echo=settings.DEBUG,
            connect_args={"timeout": settings.RESERVATION_TIMEOUT},
        )
        enable_sqlite_immediate_transactions(engine)
        return engine

    connect_args = {}
    if url.startswith("postgresql+asyncpg"):
        connect_args["server_settings"] = {
            "statement_timeout": str(settings.DB_STATEMENT_TIMEOUT_MS),
            "lock_timeout": str(settings.DB_LOCK_TIMEOUT_MS),
        }

    return create_async_engine(
        url,
        echo=settings.DEBUG,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_recycle=settings.DB_POOL_RECYCLE,
        pool_pre_ping=True,
        connect_args=connect_args,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@lru_cache()
def get_engine() -> AsyncEngine:
    return build_engine(get_settings().DATABASE_URL)


@lru_cache()
def get_session_factory() -> async_sessionmaker[AsyncSession]:
    return build_session_factory(get_engine())


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding a request-scoped session."""
    async with get_session_factory()() as session:
        yield session
