"""Public, cacheable endpoints served through the stale-while-revalidate cache."""

from typing import Any

from fastapi import APIRouter, Depends

from thesis_support.api.v1.dependencies import get_swr_cache
from thesis_support.core.config import get_settings
from thesis_support.infrastructure.cache import StaleWhileRevalidateCache, public_key
from thesis_support.infrastructure.persistence import database
from thesis_support.schemas.public import PublicStatusResponse
from thesis_support.shared.utils.datetime import utc_now

router = APIRouter()


async def build_status() -> dict[str, Any]:
    """Produce the public status payload (queries the database when configured)."""
    settings = get_settings()
    db_version = (
        await database.fetch_server_version()
        if database.is_configured()
        else "not_configured"
    )
    return {
        "app": settings.app_name,
        "version": settings.app_version,
        "database": db_version,
        "generated_at": utc_now().isoformat(),
    }


@router.get("/status", response_model=PublicStatusResponse)
async def public_status(
    swr: StaleWhileRevalidateCache = Depends(get_swr_cache),
) -> PublicStatusResponse:
    """Return service status; cached for the public API TTL and revalidated in the background."""
    payload = await swr.get(public_key("status"), build_status)
    return PublicStatusResponse(**payload)
