"""
Pytest fixtures for the store, the dedup cache, the reservation engine
and the HTTP client.

Each test gets its own file-backed SQLite database (so concurrent
transactions use separate connections) and its own fake Redis server.
"""

from typing import AsyncGenerator

import fakeredis
import fakeredis.aioredis
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from booking_core.api.dependencies import get_reservation_engine
from booking_core.core.config import Settings
from booking_core.db.base import Base
from booking_core.db.session import build_engine, build_session_factory, get_db
from booking_core.main import app
from booking_core.models.booking import Booking
from booking_core.models.event import Event
from booking_core.services.dedup_cache_service import RedisDedupCache
from booking_core.services.reservation_service import ReservationEngine


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    return Settings(
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'bookings.db'}",
        REDIS_ENABLED=False,
        RESERVATION_TIMEOUT=30.0,
        DEDUP_CACHE_TTL=3600,
        CACHE_TIMEOUT=1.0,
    )


@pytest_asyncio.fixture
async def db_engine(test_settings: Settings) -> AsyncGenerator[AsyncEngine, None]:
    """Create tables, yield the engine, then dispose of it."""
    engine = build_engine(test_settings.DATABASE_URL, test_settings)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return build_session_factory(db_engine)


@pytest.fixture
def redis_server() -> fakeredis.FakeServer:
    return fakeredis.FakeServer()


@pytest_asyncio.fixture
async def fake_redis(redis_server):
    client = fakeredis.aioredis.FakeRedis(server=redis_server, decode_responses=True)
    yield client
    await client.aclose()


@pytest_asyncio.fixture
async def dedup_cache(fake_redis, test_settings: Settings) -> AsyncGenerator[RedisDedupCache, None]:
    cache = RedisDedupCache(
        fake_redis,
        ttl=test_settings.DEDUP_CACHE_TTL,
        timeout=test_settings.CACHE_TIMEOUT,
    )
    yield cache
    await cache.drain()


@pytest.fixture
def reservation_engine(session_factory, dedup_cache, test_settings) -> ReservationEngine:
    return ReservationEngine(session_factory, dedup_cache, test_settings)


@pytest.fixture
def make_event(session_factory):
    """Insert an event and return its id."""

    async def _make_event(name: str = "Test Concert", total_seats: int = 100) -> int:
        async with session_factory() as session:
            async with session.begin():
                event = Event(name=name, total_seats=total_seats)
                session.add(event)
                await session.flush()
                return event.id

    return _make_event


@pytest.fixture
def count_bookings(session_factory):
    """Count committed bookings, optionally for one event."""

    async def _count(event_id: int = None) -> int:
        query = select(func.count(Booking.id))
        if event_id is not None:
            query = query.where(Booking.event_id == event_id)
        async with session_factory() as session:
            return (await session.execute(query)).scalar_one()

    return _count


@pytest_asyncio.fixture
async def client(
    db_engine, session_factory, fake_redis, reservation_engine
) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client wired to the test store and cache."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_reservation_engine] = lambda: reservation_engine
    app.state.db_engine = db_engine
    app.state.redis = fake_redis

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
