"""
Tests for the dedup cache implementations.
"""

import pytest

from booking_core.core.exceptions import CacheFailure
from booking_core.services.dedup_cache_service import RedisDedupCache, build_dedup_cache
from booking_core.services.interfaces.dedup_cache import NullDedupCache, booking_key


def test_booking_key_format():
    assert booking_key(1, "alice") == "booking:1:alice"


@pytest.mark.asyncio
async def test_miss_then_hit(dedup_cache):
    assert (await dedup_cache.is_booked(1, "alice")).hit is False

    written = await dedup_cache.mark_booked(1, "alice")
    assert written.ok

    result = await dedup_cache.is_booked(1, "alice")
    assert result.ok
    assert result.hit is True


@pytest.mark.asyncio
async def test_marker_expires_with_ttl(fake_redis):
    cache = RedisDedupCache(fake_redis, ttl=120, timeout=1.0)

    await cache.mark_booked(7, "bob")

    ttl = await fake_redis.ttl(booking_key(7, "bob"))
    assert 0 < ttl <= 120


@pytest.mark.asyncio
async def test_background_write_completes_on_drain(dedup_cache, fake_redis):
    dedup_cache.mark_booked_in_background(3, "carol")
    await dedup_cache.drain()

    assert await fake_redis.get(booking_key(3, "carol")) == "true"


@pytest.mark.asyncio
async def test_errors_are_returned_not_raised(redis_server, fake_redis):
    cache = RedisDedupCache(fake_redis, ttl=60, timeout=1.0)
    redis_server.connected = False

    read = await cache.is_booked(1, "alice")
    write = await cache.mark_booked(1, "alice")
    cache.mark_booked_in_background(1, "alice")
    await cache.drain()

    assert read.hit is False
    assert not read.ok
    assert isinstance(read.error, CacheFailure)
    assert read.error.operation == "get"
    assert not write.ok
    assert write.error.key == "booking:1:alice"


class BrokenClient:
    """Client whose calls fail with errors outside redis.exceptions."""

    async def get(self, key):
        raise RuntimeError("decoder exploded")

    async def set(self, key, value, ex=None):
        raise ValueError("bad reply")


@pytest.mark.asyncio
async def test_unexpected_client_errors_become_failures():
    cache = RedisDedupCache(BrokenClient(), ttl=60, timeout=1.0)

    read = await cache.is_booked(1, "alice")
    write = await cache.mark_booked(1, "alice")

    assert read.hit is False
    assert read.error.operation == "get"
    assert "decoder exploded" in read.error.reason
    assert write.error.operation == "set"
    assert "bad reply" in write.error.reason


@pytest.mark.asyncio
async def test_null_cache_always_misses():
    cache = NullDedupCache()

    await cache.mark_booked(1, "alice")
    cache.mark_booked_in_background(1, "alice")
    await cache.drain()

    result = await cache.is_booked(1, "alice")
    assert result.ok
    assert result.hit is False


def test_build_dedup_cache_without_client():
    assert isinstance(build_dedup_cache(None, ttl=60, timeout=0.1), NullDedupCache)


def test_build_dedup_cache_with_client(fake_redis):
    cache = build_dedup_cache(fake_redis, ttl=60, timeout=0.1)
    assert isinstance(cache, RedisDedupCache)
    assert cache.ttl == 60
