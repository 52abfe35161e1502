"""Upload policy, unique filenames and local upload storage.

Files are written in chunks to a temp file under upload_dir and renamed
into place once complete, so a rejected or failed upload never leaves a
partial file behind. The per-file size limit is enforced while reading,
not from the client-declared size.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import re
import secrets
import tempfile
import time
from collections.abc import AsyncIterator, Iterable
from dataclasses import dataclass
from pathlib import Path, PurePath
from typing import TYPE_CHECKING, Any, Protocol

import aiofiles
import aiofiles.os

from thesis_support.domain.exceptions import (
    UnsupportedFileTypeException,
    UploadLimitExceededException,
    ValidationException,
)
from thesis_support.infrastructure.exceptions import (
    StorageDeleteError,
    StorageNotFoundError,
    StoragePermissionError,
    StorageUploadError,
)
from thesis_support.shared.utils.datetime import from_timestamp_utc, utc_now

if TYPE_CHECKING:
    from thesis_support.core.config import Settings

logger = logging.getLogger(__name__)

LIMIT_FILE_COUNT = "LIMIT_FILE_COUNT"
LIMIT_FILE_SIZE = "LIMIT_FILE_SIZE"

_FIELD_NAME_UNSAFE = re.compile(r"[^A-Za-z0-9_-]")
_STORED_NAME_RE = re.compile(r"^[A-Za-z0-9_-]+-\d+-\d+(\.[A-Za-z0-9]+)?$")
_META_SUFFIX = ".meta.json"


class AsyncReadable(Protocol):
    """Anything with an async read(size) (e.g. Starlette UploadFile)."""

    async def read(self, size: int = -1) -> bytes: ...


@dataclass(frozen=True)
class UploadPolicy:
    """Limits applied to every upload request."""

    max_file_size: int
    max_files: int
    allowed_extensions: frozenset[str]

    @classmethod
    def from_settings(cls, settings: "Settings") -> "UploadPolicy":
        return cls(
            max_file_size=settings.max_upload_file_size,
            max_files=settings.max_upload_files,
            allowed_extensions=settings.upload_extensions,
        )

    def check_count(self, count: int) -> None:
        """Raise UploadLimitExceededException(LIMIT_FILE_COUNT) if count is over the limit."""
        if count > self.max_files:
            raise UploadLimitExceededException(LIMIT_FILE_COUNT, self.max_files, count)

    def check_size(self, size: int, filename: str | None = None) -> None:
        """Raise UploadLimitExceededException(LIMIT_FILE_SIZE) if size is over the limit."""
        if size > self.max_file_size:
            raise UploadLimitExceededException(
                LIMIT_FILE_SIZE, self.max_file_size, size, filename
            )

    def check_filename(self, filename: str | None) -> str:
        """Validate the original filename and return its lower-cased extension.

        Raises:
            ValidationException: Empty filename.
            UnsupportedFileTypeException: Extension not in allowed_extensions.
        """
        if not filename or not filename.strip():
            raise ValidationException("Filename required", field="filename")
        ext = file_extension(filename)
        if self.allowed_extensions and ext not in self.allowed_extensions:
            raise UnsupportedFileTypeException(filename, sorted(self.allowed_extensions))
        return ext


def file_extension(filename: str) -> str:
    """Return the lower-cased extension of filename including the dot ('' if none)."""
    return PurePath(filename.replace("\\", "/")).suffix.lower()


def generate_unique_filename(field_name: str, original_filename: str) -> str:
    """Return '<field>-<unix millis>-<random 0..1e9><ext>' for original_filename.

    The field name is reduced to [A-Za-z0-9_-] ('file' if nothing is left).
    """
    field = _FIELD_NAME_UNSAFE.sub("", field_name) or "file"
    millis = int(time.time() * 1000)
    suffix = secrets.randbelow(1_000_000_000)
    return f"{field}-{millis}-{suffix}{file_extension(original_filename)}"


def is_stored_name(name: str) -> bool:
    """Return True if name has the shape produced by generate_unique_filename."""
    return bool(_STORED_NAME_RE.match(name))


class LocalUploadStorage:
    """Local filesystem storage for uploads with atomic writes and path checks.

    Metadata is kept in a <name>.meta.json sidecar next to each file.
    """

    CHUNK_SIZE = 64 * 1024  # 64KB

    def __init__(self, upload_dir: str | os.PathLike[str], policy: UploadPolicy) -> None:
        """Initialize storage.

        Args:
            upload_dir: Base directory for uploaded files (created if missing).
            policy: Size/count/extension limits.
        """
        self.root = Path(upload_dir).resolve()
        self.policy = policy
        self.root.mkdir(parents=True, exist_ok=True, mode=0o750)

    def _get_full_path(self, name: str) -> Path:
        """Resolve name under root. Raises StoragePermissionError on traversal."""
        full_path = (self.root / name).resolve()
        try:
            full_path.relative_to(self.root)
        except ValueError as e:
            raise StoragePermissionError(name, "path_validation") from e
        if full_path == self.root or full_path.name.endswith(_META_SUFFIX):
            raise StoragePermissionError(name, "path_validation")
        return full_path

    @staticmethod
    def _meta_path(file_path: Path) -> Path:
        return file_path.with_name(file_path.name + _META_SUFFIX)

    def _discard(self, file_path: Path) -> None:
        """Remove a stored file and its sidecar, ignoring ones that are already gone."""
        for path in (file_path, self._meta_path(file_path)):
            try:
                path.unlink(missing_ok=True)
            except OSError:
                logger.warning("Could not remove %s after a failed upload", path, exc_info=True)

    async def _write_metadata(self, file_path: Path, metadata: dict[str, Any]) -> None:
        async with aiofiles.open(self._meta_path(file_path), "w") as f:
            await f.write(json.dumps(metadata, indent=2))

    async def _read_metadata(self, file_path: Path) -> dict[str, Any]:
        meta_path = self._meta_path(file_path)
        if not meta_path.exists():
            return {}
        async with aiofiles.open(meta_path, "r") as f:
            result = json.loads(await f.read())
        return result if isinstance(result, dict) else {}

    async def save(
        self,
        source: AsyncReadable,
        original_filename: str | None,
        content_type: str | None = None,
        field_name: str = "file",
    ) -> dict[str, Any]:
        """Validate and store one uploaded file; return its metadata.

        Raises:
            ValidationException / UnsupportedFileTypeException: Bad filename.
            UploadLimitExceededException: File larger than max_file_size.
            StorageUploadError: Filesystem failure.
        """
        ext = self.policy.check_filename(original_filename)
        stored_name = generate_unique_filename(field_name, original_filename or "")
        target_path = self._get_full_path(stored_name)

        temp_fd, temp_name = tempfile.mkstemp(dir=self.root, prefix=".tmp_", suffix=ext)
        os.close(temp_fd)
        temp_path = Path(temp_name)
        sha256 = hashlib.sha256()
        size = 0
        try:
            async with aiofiles.open(temp_path, "wb") as out:
                while True:
                    chunk = await source.read(self.CHUNK_SIZE)
                    if not chunk:
                        break
                    size += len(chunk)
                    self.policy.check_size(size, original_filename)
                    sha256.update(chunk)
                    await out.write(chunk)
            os.chmod(temp_path, 0o640)
            os.replace(temp_path, target_path)
            metadata: dict[str, Any] = {
                "filename": stored_name,
                "original_filename": original_filename,
                "extension": ext,
                "size": size,
                "content_type": content_type or "application/octet-stream",
                "checksum": sha256.hexdigest(),
                "uploaded_at": utc_now().isoformat(),
            }
            try:
                await self._write_metadata(target_path, metadata)
            except BaseException:
                self._discard(target_path)
                raise
        except UploadLimitExceededException:
            logger.info(
                "Upload rejected: %s exceeds %s bytes",
                original_filename,
                self.policy.max_file_size,
            )
            raise
        except OSError as e:
            raise StorageUploadError(stored_name, str(e)) from e
        finally:
            if temp_path.exists():
                temp_path.unlink()
        logger.info("Stored upload %s (%s bytes) as %s", original_filename, size, stored_name)
        return metadata

    async def save_many(
        self,
        files: Iterable[tuple[AsyncReadable, str | None, str | None]],
        field_name: str = "files",
    ) -> list[dict[str, Any]]:
        """Store several files after checking the count limit.

        If any file fails, files already stored by this call are removed.
        """
        items = list(files)
        self.policy.check_count(len(items))
        stored: list[dict[str, Any]] = []
        try:
            for source, filename, content_type in items:
                stored.append(
                    await self.save(source, filename, content_type, field_name=field_name)
                )
        except Exception:
            for meta in stored:
                await self.delete(meta["filename"])
            raise
        return stored

    async def open(self, name: str) -> AsyncIterator[bytes]:
        """Stream file content in CHUNK_SIZE chunks."""
        file_path = self._get_full_path(name)
        if not file_path.is_file():
            raise StorageNotFoundError(name)
        async with aiofiles.open(file_path, "rb") as f:
            while True:
                chunk = await f.read(self.CHUNK_SIZE)
                if not chunk:
                    break
                yield chunk

    async def exists(self, name: str) -> bool:
        """Return True if a stored file with this name exists."""
        try:
            return self._get_full_path(name).is_file()
        except StoragePermissionError:
            return False

    async def get_metadata(self, name: str) -> dict[str, Any]:
        """Return stored metadata merged with current size and mtime."""
        file_path = self._get_full_path(name)
        if not file_path.is_file():
            raise StorageNotFoundError(name)
        stat = file_path.stat()
        stored = await self._read_metadata(file_path)
        return {
            "filename": name,
            "original_filename": stored.get("original_filename"),
            "extension": stored.get("extension", file_path.suffix.lower()),
            "size": stat.st_size,
            "content_type": stored.get("content_type", "application/octet-stream"),
            "checksum": stored.get("checksum"),
            "uploaded_at": stored.get("uploaded_at"),
            "last_modified": from_timestamp_utc(stat.st_mtime).isoformat(),
        }

    async def delete(self, name: str) -> bool:
        """Delete file and sidecar. Returns False if the file did not exist."""
        file_path = self._get_full_path(name)
        if not file_path.is_file():
            return False
        try:
            await aiofiles.os.remove(file_path)
            meta_path = self._meta_path(file_path)
            if meta_path.exists():
                await aiofiles.os.remove(meta_path)
        except OSError as e:
            raise StorageDeleteError(name, str(e)) from e
        logger.info("Deleted upload %s", name)
        return True
