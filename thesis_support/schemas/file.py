"""Upload API schemas."""

from pydantic import BaseModel, Field


class FileMetadata(BaseModel):
    """Stored file metadata returned by upload and metadata endpoints."""

    filename: str = Field(..., description="Generated unique filename")
    original_filename: str | None = Field(default=None, description="Client filename")
    extension: str = Field(..., description="Lower-cased extension including the dot")
    size: int = Field(..., ge=0, description="Size in bytes")
    content_type: str
    checksum: str | None = Field(default=None, description="SHA-256 hex digest")
    uploaded_at: str | None = None


class UploadResponse(BaseModel):
    """Response for POST /files."""

    files: list[FileMetadata]
    count: int


class UploadLimitsResponse(BaseModel):
    """Response for GET /files/limits."""

    max_file_size: int
    max_files: int
    allowed_extensions: list[str]
