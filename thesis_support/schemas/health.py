"""Health check API schemas."""

from typing import Any

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Response for GET /health (liveness)."""

    status: str = Field(default="ok", description="Service status")


class ComponentStatus(BaseModel):
    """Readiness of one dependency."""

    status: str = Field(..., description="ok, unavailable or not_configured")
    detail: str | None = Field(default=None, description="Reason when not ok")


class ReadinessResponse(BaseModel):
    """Response for GET /health/ready."""

    status: str = Field(default="ok", description="ok or not_ready")
    database: ComponentStatus
    cache: ComponentStatus
    pool: dict[str, Any] = Field(default_factory=dict, description="Connection pool counters")


class MemoryResponse(BaseModel):
    """Response for GET /health/memory."""

    rss_mb: float
    vms_mb: float
    percent: float
    warning_threshold_mb: int
    critical_threshold_mb: int
    level: str = Field(..., description="ok, warning or critical")
