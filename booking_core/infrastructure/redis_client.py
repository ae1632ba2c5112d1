"""
Shared async Redis client for the dedup cache.
Returns None when Redis is disabled or unreachable; callers then run
without a cache rather than failing.
"""

from typing import Optional

import redis.asyncio as redis
from booking_core.core.config import get_settings
from booking_core.core.logging import get_logger

logger = get_logger(__name__)

_redis_client: Optional[redis.Redis] = None


async def get_redis() -> Optional[redis.Redis]:
    """Get or create the Redis connection. Returns None if Redis is disabled."""
    global _redis_client
    settings = get_settings()

    if not settings.REDIS_ENABLED:
        return None

    if _redis_client is None:
        client = redis.from_url(
            settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=settings.CACHE_TIMEOUT,
            socket_timeout=settings.CACHE_TIMEOUT,
        )
        try:
            await client.ping()
        except (redis.RedisError, OSError) as e:
            logger.error("redis_connection_failed", url=settings.REDIS_URL, error=str(e))
            await client.aclose()
            return None
        logger.info("redis_connected", url=settings.REDIS_URL)
        _redis_client = client

    return _redis_client


async def close_redis() -> None:
    """Close Redis connection on shutdown."""
    global _redis_client
    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None
