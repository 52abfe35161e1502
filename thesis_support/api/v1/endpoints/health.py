"""Health endpoints: liveness, readiness (database + cache) and process memory."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from thesis_support.api.v1.dependencies import get_cache
from thesis_support.core.config import get_settings
from thesis_support.domain.exceptions import (
    DatabaseUnavailableException,
    SqlNotConfiguredException,
)
from thesis_support.infrastructure.cache import CacheService
from thesis_support.infrastructure.persistence import database
from thesis_support.schemas.health import (
    ComponentStatus,
    HealthResponse,
    MemoryResponse,
    ReadinessResponse,
)
from thesis_support.shared.telemetry.memory import get_memory_snapshot

router = APIRouter()


@router.get("", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Return simple ok status for liveness."""
    return HealthResponse()


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    responses={503: {"description": "Database configured but unreachable", "model": ReadinessResponse}},
)
async def readiness_check(
    cache: CacheService = Depends(get_cache),
) -> ReadinessResponse | JSONResponse:
    """Return 200 when every configured dependency answers; 503 otherwise.

    An unconfigured database (no DATABASE_URL) or an unavailable cache do not
    fail readiness: the API degrades without them.
    """
    try:
        await database.check_database()
        db_status = ComponentStatus(status="ok")
    except SqlNotConfiguredException:
        db_status = ComponentStatus(status="not_configured")
    except DatabaseUnavailableException as e:
        db_status = ComponentStatus(status="unavailable", detail=e.message)

    if cache.is_available():
        cache_status = ComponentStatus(status="ok")
    elif get_settings().redis_enabled:
        cache_status = ComponentStatus(status="unavailable", detail="Redis not connected")
    else:
        cache_status = ComponentStatus(status="not_configured")

    response = ReadinessResponse(
        status="not_ready" if db_status.status == "unavailable" else "ok",
        database=db_status,
        cache=cache_status,
        pool=database.pool_status(),
    )
    if response.status != "ok":
        return JSONResponse(status_code=503, content=response.model_dump())
    return response


@router.get("/memory", response_model=MemoryResponse)
def memory_usage() -> MemoryResponse:
    """Return current process memory usage and its level against the thresholds."""
    settings = get_settings()
    snapshot = get_memory_snapshot(
        settings.memory_warning_threshold_mb,
        settings.memory_critical_threshold_mb,
    )
    return MemoryResponse(**snapshot.to_dict())
