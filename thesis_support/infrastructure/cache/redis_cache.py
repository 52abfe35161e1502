"""Redis-based cache service with get-or-fetch.

Provides async Redis caching with TTL support. Values are stored as JSON.
When Redis is unreachable the service degrades to a pass-through: reads
are misses, writes are no-ops, and get_or_fetch always calls the fetcher.
Integrates with thesis_support.infrastructure.cache.keys for key format (DRY).
"""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable
from functools import wraps
from typing import Any, TypeVar

import redis.asyncio as redis

from thesis_support.core.config import get_settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CacheService:
    """Async Redis cache service with TTL support.

    Uses thesis_support.core.config for connection settings. Call connect()
    at startup and disconnect() at shutdown.
    """

    def __init__(self, redis_client: redis.Redis | None = None) -> None:
        """Initialize cache service.

        Args:
            redis_client: Optional Redis client for testing or DI. When given,
                connect() only verifies it and disconnect() does not close it.
        """
        self.redis = redis_client
        self.settings = get_settings()
        self._owns_client = redis_client is None
        self._connected = False

    @property
    def default_ttl(self) -> int:
        return self.settings.cache_default_ttl

    def _create_client(self) -> redis.Redis:
        password = self.settings.redis_password
        return redis.Redis(
            host=self.settings.redis_host,
            port=self.settings.redis_port,
            db=self.settings.redis_db,
            password=password.get_secret_value() if password else None,
            decode_responses=True,
            max_connections=self.settings.redis_max_connections,
            socket_connect_timeout=5,
            socket_keepalive=True,
        )

    async def connect(self) -> None:
        """Establish Redis connection. Call on app startup.

        A failed ping leaves the service unavailable (cache disabled) rather
        than failing startup.
        """
        if self.redis is None:
            self.redis = self._create_client()
        try:
            await self.redis.ping()
            self._connected = True
            logger.info(
                "Redis cache connected: %s:%s",
                self.settings.redis_host,
                self.settings.redis_port,
            )
        except (redis.ConnectionError, redis.TimeoutError) as e:
            logger.warning("Redis connection failed: %s. Cache disabled.", e)
            self._connected = False
            if self._owns_client:
                await self._close_client()

    async def _close_client(self) -> None:
        if self.redis is None:
            return
        try:
            await self.redis.aclose()
        except redis.RedisError:
            logger.debug("Ignoring error while closing Redis client", exc_info=True)
        self.redis = None

    async def disconnect(self) -> None:
        """Close Redis connection. Call on app shutdown."""
        if self.redis is not None:
            if self._owns_client:
                await self._close_client()
            self._connected = False
            logger.info("Redis cache disconnected")

    async def _reconnect(self) -> bool:
        """Attempt to reconnect after a connection error. Returns True if reconnected."""
        if self.redis is None:
            return False
        self._connected = False
        if self._owns_client:
            await self._close_client()
        await self.connect()
        return self._connected

    def is_available(self) -> bool:
        """Return True if Redis is connected and usable."""
        return self._connected and self.redis is not None

    async def _execute(
        self,
        op: str,
        key: str,
        call: Callable[[redis.Redis], Awaitable[T]],
        default: T,
    ) -> T:
        """Run call against Redis with one reconnect attempt on connection errors.

        Returns default when the cache is unavailable or the command fails.
        """
        if not self.is_available() or self.redis is None:
            return default
        try:
            return await call(self.redis)
        except (redis.ConnectionError, redis.TimeoutError):
            if await self._reconnect() and self.redis is not None:
                try:
                    return await call(self.redis)
                except redis.RedisError:
                    logger.exception("Cache %s error for key %s after reconnect", op, key)
                    return default
            logger.warning("Cache %s unavailable for key %s (Redis disconnected)", op, key)
            return default
        except redis.RedisError:
            logger.exception("Cache %s error for key %s", op, key)
            return default

    async def get(self, key: str) -> Any | None:
        """Return cached value (JSON-deserialized) or None if missing/unavailable.

        Args:
            key: Cache key (use thesis_support.infrastructure.cache.keys builders).

        Returns:
            Cached value or None.
        """
        raw = await self._execute("get", key, lambda r: r.get(key), None)
        if raw is None:
            logger.debug("Cache MISS: %s", key)
            return None
        try:
            value = json.loads(raw)
        except ValueError:
            logger.warning("Cache value for %s is not valid JSON; treating as miss", key)
            return None
        logger.debug("Cache HIT: %s", key)
        return value

    async def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        """Store value with TTL. Returns True on success.

        Args:
            key: Cache key.
            value: Value to cache (JSON-serializable).
            ttl: Time-to-live in seconds (default: cache_default_ttl).

        Returns:
            True if stored, False otherwise.
        """
        expire = ttl if ttl is not None else self.default_ttl
        try:
            serialized = json.dumps(value)
        except (TypeError, ValueError):
            logger.warning("Cache SET skipped for %s: value is not JSON-serializable", key)
            return False
        stored = await self._execute(
            "set", key, lambda r: r.setex(key, expire, serialized), None
        )
        if stored is None:
            return False
        logger.debug("Cache SET: %s (TTL: %ss)", key, expire)
        return True

    async def delete(self, key: str) -> bool:
        """Remove key from cache. Returns True if the command ran.

        Args:
            key: Cache key to delete.
        """
        result = await self._execute("delete", key, lambda r: r.delete(key), None)
        if result is None:
            return False
        logger.debug("Cache DELETE: %s", key)
        return True

    async def ttl(self, key: str) -> int | None:
        """Return remaining TTL in seconds, or None if missing/unavailable."""
        remaining = await self._execute("ttl", key, lambda r: r.ttl(key), None)
        if remaining is None or remaining < 0:
            return None
        return int(remaining)

    async def get_or_fetch(
        self,
        key: str,
        fetcher: Callable[[], Awaitable[Any]],
        ttl: int | None = None,
    ) -> Any:
        """Return cached value, or await fetcher, cache its result and return it.

        None results are returned but not cached. Exceptions from fetcher
        propagate and nothing is stored.

        Args:
            key: Cache key.
            fetcher: Zero-argument coroutine function producing the value.
            ttl: Time-to-live in seconds (default: cache_default_ttl).
        """
        cached_value = await self.get(key)
        if cached_value is not None:
            return cached_value
        value = await fetcher()
        if value is not None:
            await self.set(key, value, ttl=ttl)
        return value

    async def delete_pattern(self, pattern: str) -> int:
        """Delete all keys matching pattern using SCAN + batched UNLINK (non-blocking).

        Args:
            pattern: Redis SCAN match pattern (e.g. public:*).

        Returns:
            Number of keys deleted.
        """
        chunk_size = 500

        async def _scan_unlink(r: redis.Redis) -> int:
            deleted = 0
            chunk: list[str] = []
            async for key in r.scan_iter(match=pattern):
                chunk.append(key)
                if len(chunk) >= chunk_size:
                    deleted += int(await r.unlink(*chunk) or 0)
                    chunk = []
            if chunk:
                deleted += int(await r.unlink(*chunk) or 0)
            return deleted

        deleted = await self._execute("delete_pattern", pattern, _scan_unlink, 0)
        if deleted > 0:
            logger.info("Cache INVALIDATE: %s (%s keys)", pattern, deleted)
        return deleted

    async def clear_all(self) -> bool:
        """Clear the current Redis database. Use with caution."""
        result = await self._execute("clear", "*", lambda r: r.flushdb(), None)
        if result is None:
            return False
        logger.warning("Cache CLEARED: all keys deleted")
        return True


def _resolve_cache(
    args: tuple[Any, ...], kwargs: dict[str, Any]
) -> tuple[CacheService | None, tuple[Any, ...], dict[str, Any]]:
    """Resolve CacheService and args/kwargs for the wrapped function.

    Resolution order: keyword "cache", then args[0].cache, then args[0] if
    CacheService. The keyword is removed before the wrapped call.
    """
    if isinstance(kwargs.get("cache"), CacheService):
        cache = kwargs["cache"]
        call_kwargs = {k: v for k, v in kwargs.items() if k != "cache"}
        return cache, args, call_kwargs
    if args:
        first = args[0]
        if isinstance(first, CacheService):
            return first, args[1:], kwargs
        cache_attr = getattr(first, "cache", None)
        if isinstance(cache_attr, CacheService):
            return cache_attr, args[1:], kwargs
    return None, args, kwargs


def cached(
    key_prefix: str,
    ttl: int | None = None,
    key_builder: Callable[..., str] | None = None,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Decorator to cache async function results through get_or_fetch.

    The wrapped function must receive a CacheService in one of these ways:
    - keyword argument "cache" (recommended, e.g. from Depends; not forwarded),
    - first argument has a .cache attribute that is a CacheService,
    - or first argument is the CacheService instance.

    Args:
        key_prefix: Prefix for cache key (e.g. 'fetch').
        ttl: Time-to-live in seconds (default: cache_default_ttl).
        key_builder: Optional callable(*args, **kwargs) -> key; else built from args/kwargs.
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            cache, key_args, call_kwargs = _resolve_cache(args, kwargs)
            if cache is None:
                return await func(*args, **kwargs)
            if key_builder:
                cache_key = key_builder(*key_args, **call_kwargs)
            else:
                parts = [str(a) for a in key_args]
                parts.extend(f"{k}={v}" for k, v in sorted(call_kwargs.items()))
                cache_key = f"{key_prefix}:{':'.join(parts)}"
            return await cache.get_or_fetch(
                cache_key,
                lambda: func(*args, **call_kwargs),
                ttl=ttl,
            )

        return wrapper

    return decorator
