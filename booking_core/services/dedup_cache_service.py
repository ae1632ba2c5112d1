"""
Redis-backed dedup cache for reservations.

CACHING STRATEGY
================

What we cache:
  - One marker per proven booking: "booking:{event_id}:{user_id}" -> "true"
  - Written with SET EX so every marker expires (default 1 hour)

When we write:
  - After a reservation commits
  - After the store reports the pair as already booked (in-transaction
    lookup or unique-constraint violation)
  Never before the store has decided.

Failure policy:
  Every call runs under a short timeout. Errors and timeouts are returned
  as CacheResult.error and the reservation carries on: a failed read is a
  miss, a failed write is skipped. The store's unique constraint is what
  actually prevents duplicates.
"""

import asyncio
from typing import Optional, Set

import redis.asyncio as redis

from booking_core.core.exceptions import CacheFailure
from booking_core.core.logging import get_logger
from booking_core.core.metrics import record_cache_operation
from booking_core.services.interfaces.dedup_cache import (
    CacheResult,
    DedupCache,
    NullDedupCache,
    booking_key,
)

logger = get_logger(__name__)

MARKER = "true"


class RedisDedupCache(DedupCache):
    def __init__(self, client: redis.Redis, ttl: int, timeout: float):
        self.client = client
        self.ttl = ttl
        self.timeout = timeout
        self._pending: Set[asyncio.Task] = set()

    async def is_booked(self, event_id: int, user_id: str) -> CacheResult:
        key = booking_key(event_id, user_id)
        try:
            value = await asyncio.wait_for(self.client.get(key), timeout=self.timeout)
        except asyncio.TimeoutError:
            record_cache_operation("get", "timeout")
            return CacheResult(error=CacheFailure("get", key, "timeout"))
        except Exception as e:
            record_cache_operation("get", "error")
            return CacheResult(error=CacheFailure("get", key, str(e)))

        hit = value is not None
        record_cache_operation("get", "hit" if hit else "miss")
        return CacheResult(hit=hit)

    async def mark_booked(self, event_id: int, user_id: str) -> CacheResult:
        key = booking_key(event_id, user_id)
        try:
            await asyncio.wait_for(self.client.set(key, MARKER, ex=self.ttl), timeout=self.timeout)
        except asyncio.TimeoutError:
            record_cache_operation("set", "timeout")
            return CacheResult(error=CacheFailure("set", key, "timeout"))
        except Exception as e:
            record_cache_operation("set", "error")
            return CacheResult(error=CacheFailure("set", key, str(e)))

        record_cache_operation("set", "ok")
        logger.debug("dedup_cache_set", key=key, ttl=self.ttl)
        return CacheResult()

    def mark_booked_in_background(self, event_id: int, user_id: str) -> None:
        task = asyncio.create_task(self._mark_and_log(event_id, user_id))
        # The loop keeps only weak references to tasks
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _mark_and_log(self, event_id: int, user_id: str) -> None:
        result = await self.mark_booked(event_id, user_id)
        if not result.ok:
            logger.warning(
                "dedup_cache_write_failed",
                event_id=event_id,
                user_id=user_id,
                error=str(result.error),
                background=True,
            )

    async def drain(self) -> None:
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)


def build_dedup_cache(client: Optional[redis.Redis], ttl: int, timeout: float) -> DedupCache:
    """Pick the cache implementation for the available Redis client."""
    if client is None:
        return NullDedupCache()
    return RedisDedupCache(client, ttl=ttl, timeout=timeout)
