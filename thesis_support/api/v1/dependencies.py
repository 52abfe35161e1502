"""FastAPI dependencies: cache, stale-while-revalidate cache and upload storage.

Instances are created by the lifespan and kept on app.state. When the app
runs without lifespan (e.g. ASGITransport in tests) they are created on
first use from settings; the cache then stays unconnected and behaves as
an always-miss pass-through.
"""

from fastapi import Request

from thesis_support.core.config import get_settings
from thesis_support.infrastructure.cache import CacheService, StaleWhileRevalidateCache
from thesis_support.infrastructure.storage import LocalUploadStorage, UploadPolicy


def get_cache(request: Request) -> CacheService:
    """Return the app-wide CacheService."""
    state = request.app.state
    cache = getattr(state, "cache", None)
    if cache is None:
        cache = CacheService()
        state.cache = cache
    return cache


def get_swr_cache(request: Request) -> StaleWhileRevalidateCache:
    """Return the app-wide stale-while-revalidate cache for public endpoints."""
    state = request.app.state
    swr = getattr(state, "swr_cache", None)
    if swr is None:
        settings = get_settings()
        swr = StaleWhileRevalidateCache(
            get_cache(request),
            fresh_ttl=settings.cache_ttl_public_api,
            stale_ttl=settings.cache_stale_ttl,
        )
        state.swr_cache = swr
    return swr


def get_upload_storage(request: Request) -> LocalUploadStorage:
    """Return the app-wide upload storage."""
    state = request.app.state
    storage = getattr(state, "upload_storage", None)
    if storage is None:
        settings = get_settings()
        storage = LocalUploadStorage(settings.upload_dir, UploadPolicy.from_settings(settings))
        state.upload_storage = storage
    return storage
