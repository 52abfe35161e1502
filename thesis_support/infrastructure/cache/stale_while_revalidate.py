"""Stale-while-revalidate cache on top of CacheService.

Entries are stored as a JSON envelope {"value": ..., "stored_at": <unix
seconds>} with Redis expiry fresh_ttl + stale_ttl. Within fresh_ttl the
value is returned as is; within the stale window it is returned at once
and a single background refresh per key is scheduled; past that the
value is fetched inline.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any

from thesis_support.infrastructure.cache.cache_protocol import CacheProtocol

logger = logging.getLogger(__name__)

Fetcher = Callable[[], Awaitable[Any]]


class StaleWhileRevalidateCache:
    """Serve cached values immediately and refresh stale ones in the background.

    When the underlying cache is unavailable every call fetches inline.
    """

    def __init__(
        self,
        cache: CacheProtocol,
        fresh_ttl: int,
        stale_ttl: int,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the SWR cache.

        Args:
            cache: Underlying JSON cache (CacheService).
            fresh_ttl: Seconds a stored value is served without refresh.
            stale_ttl: Extra seconds a value may be served while refreshing.
            clock: Time source in unix seconds (injectable for tests).
        """
        if fresh_ttl <= 0:
            raise ValueError("fresh_ttl must be positive")
        if stale_ttl < 0:
            raise ValueError("stale_ttl must be >= 0")
        self.cache = cache
        self.fresh_ttl = fresh_ttl
        self.stale_ttl = stale_ttl
        self._clock = clock
        self._refreshing: dict[str, asyncio.Task[None]] = {}

    @property
    def total_ttl(self) -> int:
        return self.fresh_ttl + self.stale_ttl

    def _envelope(self, value: Any) -> dict[str, Any]:
        return {"value": value, "stored_at": self._clock()}

    async def _store(self, key: str, value: Any) -> None:
        if value is None:
            return
        await self.cache.set(key, self._envelope(value), ttl=self.total_ttl)

    async def _fetch_and_store(self, key: str, fetcher: Fetcher) -> Any:
        value = await fetcher()
        await self._store(key, value)
        return value

    async def _refresh(self, key: str, fetcher: Fetcher) -> None:
        try:
            await self._fetch_and_store(key, fetcher)
            logger.debug("SWR refreshed: %s", key)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("SWR background refresh failed for %s; serving stale value", key)
        finally:
            if self._refreshing.get(key) is asyncio.current_task():
                del self._refreshing[key]

    def is_refreshing(self, key: str) -> bool:
        """Return True if a background refresh for key is in flight."""
        return key in self._refreshing

    def _schedule_refresh(self, key: str, fetcher: Fetcher) -> None:
        if key in self._refreshing:
            return
        self._refreshing[key] = asyncio.create_task(self._refresh(key, fetcher))

    async def get(self, key: str, fetcher: Fetcher) -> Any:
        """Return the value for key, fetching or revalidating as needed.

        Args:
            key: Cache key.
            fetcher: Zero-argument coroutine function producing the value.

        Returns:
            Cached (fresh or stale) or freshly fetched value.
        """
        envelope = await self.cache.get(key)
        if not isinstance(envelope, dict) or "stored_at" not in envelope:
            return await self._fetch_and_store(key, fetcher)
        age = self._clock() - float(envelope["stored_at"])
        if age < self.fresh_ttl:
            return envelope.get("value")
        if age < self.total_ttl:
            logger.debug("SWR stale hit: %s (age %.1fs)", key, age)
            self._schedule_refresh(key, fetcher)
            return envelope.get("value")
        return await self._fetch_and_store(key, fetcher)

    async def invalidate(self, key: str) -> None:
        """Drop key and any pending refresh for it."""
        task = self._refreshing.pop(key, None)
        if task is not None:
            task.cancel()
        await self.cache.delete(key)

    async def aclose(self) -> None:
        """Cancel pending background refreshes. Call on app shutdown."""
        tasks = list(self._refreshing.values())
        self._refreshing.clear()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
