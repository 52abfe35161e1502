"""Public (cacheable) API schemas."""

from pydantic import BaseModel, Field


class PublicStatusResponse(BaseModel):
    """Response for GET /public/status."""

    app: str
    version: str
    database: str = Field(..., description="PostgreSQL server version or 'not_configured'")
    generated_at: str = Field(..., description="When this payload was produced (UTC ISO)")
