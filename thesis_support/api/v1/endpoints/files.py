"""File upload API: store up to max_upload_files files per request, stream them back, delete."""

from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Request, Response, UploadFile
from fastapi.responses import StreamingResponse

from thesis_support.api.v1.dependencies import get_upload_storage
from thesis_support.core.limiter import limit_delete, limit_upload
from thesis_support.domain.exceptions import ResourceNotFoundException
from thesis_support.infrastructure.storage import LocalUploadStorage, is_stored_name
from thesis_support.schemas.file import FileMetadata, UploadLimitsResponse, UploadResponse

router = APIRouter()


def content_disposition(filename: str) -> str:
    """Return an attachment header value that is safe for any filename.

    The plain filename parameter is reduced to printable ASCII with quotes and
    backslashes escaped; the exact name goes in filename* (RFC 6266).
    """
    ascii_name = "".join(c if " " <= c <= "~" else "_" for c in filename)
    ascii_name = ascii_name.replace("\\", "\\\\").replace('"', '\\"')
    value = f'attachment; filename="{ascii_name}"'
    if ascii_name != filename:
        value += f"; filename*=UTF-8''{quote(filename, safe='')}"
    return value


def _require_stored_name(name: str) -> str:
    if not is_stored_name(name):
        raise ResourceNotFoundException("file", name)
    return name


@router.post("", response_model=UploadResponse, status_code=201)
@limit_upload
async def upload_files(
    request: Request,
    files: list[UploadFile] = File(..., description="Files to upload (multipart field 'files')"),
    storage: LocalUploadStorage = Depends(get_upload_storage),
) -> UploadResponse:
    """Upload one or more files; all are rejected if any violates the limits."""
    try:
        stored = await storage.save_many(
            ((f, f.filename, f.content_type) for f in files),
            field_name="files",
        )
    finally:
        for f in files:
            await f.close()
    return UploadResponse(files=[FileMetadata(**m) for m in stored], count=len(stored))


@router.get("/limits", response_model=UploadLimitsResponse)
def upload_limits(
    storage: LocalUploadStorage = Depends(get_upload_storage),
) -> UploadLimitsResponse:
    """Return the active upload limits (for client-side validation)."""
    policy = storage.policy
    return UploadLimitsResponse(
        max_file_size=policy.max_file_size,
        max_files=policy.max_files,
        allowed_extensions=sorted(policy.allowed_extensions),
    )


@router.get("/{name}/metadata", response_model=FileMetadata)
async def file_metadata(
    name: str,
    storage: LocalUploadStorage = Depends(get_upload_storage),
) -> FileMetadata:
    """Return stored metadata for a file."""
    meta = await storage.get_metadata(_require_stored_name(name))
    return FileMetadata(**meta)


@router.get("/{name}")
async def download_file(
    name: str,
    storage: LocalUploadStorage = Depends(get_upload_storage),
) -> StreamingResponse:
    """Stream a stored file."""
    meta = await storage.get_metadata(_require_stored_name(name))
    download_name = meta.get("original_filename") or name
    return StreamingResponse(
        storage.open(name),
        media_type=meta["content_type"],
        headers={
            "Content-Length": str(meta["size"]),
            "Content-Disposition": content_disposition(download_name),
            "Cache-Control": "private, no-store",
        },
    )


@router.delete("/{name}", status_code=204)
@limit_delete
async def delete_file(
    request: Request,
    name: str,
    storage: LocalUploadStorage = Depends(get_upload_storage),
) -> Response:
    """Delete a stored file and its metadata."""
    if not await storage.delete(_require_stored_name(name)):
        raise ResourceNotFoundException("file", name)
    return Response(status_code=204)
