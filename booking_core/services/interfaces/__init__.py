"""
Service interfaces for dependency inversion.
Allows swapping implementations without changing business logic.
"""

from .dedup_cache import CacheResult, DedupCache, NullDedupCache

__all__ = ['CacheResult', 'DedupCache', 'NullDedupCache']
