"""Application lifespan: startup and shutdown.

Single place for all startup/shutdown logic. Wires infrastructure only:
Redis cache and the stale-while-revalidate wrapper, upload storage, the
periodic garbage collection task, and the database pool.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from thesis_support.core.config import get_settings
from thesis_support.infrastructure.cache import CacheService, StaleWhileRevalidateCache
from thesis_support.infrastructure.persistence import database
from thesis_support.infrastructure.storage import LocalUploadStorage, UploadPolicy
from thesis_support.shared.telemetry.memory import run_periodic_gc

logger = logging.getLogger(__name__)


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run startup then yield; on exit run shutdown.

    Startup order: Redis cache (if enabled), SWR cache, upload storage,
    periodic GC (if gc_interval_seconds > 0). Shutdown order: GC task,
    SWR refreshes, cache disconnect, database engine dispose.
    """
    settings = get_settings()

    # ---- Startup ----
    cache = CacheService()
    if settings.redis_enabled:
        await cache.connect()
    else:
        logger.info("Redis cache disabled by configuration")
    app.state.cache = cache
    app.state.swr_cache = StaleWhileRevalidateCache(
        cache,
        fresh_ttl=settings.cache_ttl_public_api,
        stale_ttl=settings.cache_stale_ttl,
    )
    app.state.upload_storage = LocalUploadStorage(
        settings.upload_dir, UploadPolicy.from_settings(settings)
    )

    gc_task: asyncio.Task[None] | None = None
    if settings.gc_interval_seconds > 0:
        gc_task = asyncio.create_task(run_periodic_gc(settings.gc_interval_seconds))
    app.state.gc_task = gc_task

    yield

    # ---- Shutdown ----
    if gc_task is not None:
        gc_task.cancel()
        try:
            await gc_task
        except asyncio.CancelledError:
            pass
        logger.info("Periodic GC task stopped")

    await app.state.swr_cache.aclose()

    await cache.disconnect()

    await database.dispose_engine()
