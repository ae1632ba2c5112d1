"""
Dedup cache interface.

The dedup cache remembers (event_id, user_id) pairs the store has already
proven to be booked, so repeat attempts can be rejected without opening a
transaction. It is advisory: a hit may reject, a miss never accepts.

Operations never raise. They return a ``CacheResult`` and the caller
decides what to log; a failed or timed-out read counts as a miss.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from booking_core.core.exceptions import CacheFailure


@dataclass(frozen=True)
class CacheResult:
    hit: bool = False
    error: Optional[CacheFailure] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def booking_key(event_id: int, user_id: str) -> str:
    return f"booking:{event_id}:{user_id}"


class DedupCache(ABC):
    """
    Interface for dedup caches.

    Implementations:
    - RedisDedupCache: TTL-bounded markers in Redis
    - NullDedupCache: no cache, every lookup misses
    """

    @abstractmethod
    async def is_booked(self, event_id: int, user_id: str) -> CacheResult:
        """
        Look up the marker for a pair.

        Returns:
            CacheResult with hit=True only if a marker was read successfully
        """

    @abstractmethod
    async def mark_booked(self, event_id: int, user_id: str) -> CacheResult:
        """Write the marker with the configured TTL."""

    @abstractmethod
    def mark_booked_in_background(self, event_id: int, user_id: str) -> None:
        """Schedule ``mark_booked`` without waiting for it."""

    async def drain(self) -> None:
        """Wait for background writes still in flight."""


class NullDedupCache(DedupCache):
    """
    No cache - always miss.
    Used when Redis is disabled or unreachable at startup.
    """

    async def is_booked(self, event_id: int, user_id: str) -> CacheResult:
        return CacheResult(hit=False)

    async def mark_booked(self, event_id: int, user_id: str) -> CacheResult:
        return CacheResult()

    def mark_booked_in_background(self, event_id: int, user_id: str) -> None:
        pass
