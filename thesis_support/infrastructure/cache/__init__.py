"""Cache: Redis service, stale-while-revalidate wrapper and cache key utilities.

CacheService uses thesis_support.core.config; key format is in keys.py (DRY).
"""

from thesis_support.infrastructure.cache.cache_protocol import CacheProtocol
from thesis_support.infrastructure.cache.keys import (
    build_key,
    fetch_key,
    prefix_pattern,
    public_key,
)
from thesis_support.infrastructure.cache.redis_cache import CacheService, cached
from thesis_support.infrastructure.cache.stale_while_revalidate import (
    StaleWhileRevalidateCache,
)

__all__ = [
    "CacheProtocol",
    "CacheService",
    "StaleWhileRevalidateCache",
    "build_key",
    "cached",
    "fetch_key",
    "prefix_pattern",
    "public_key",
]
