"""Upload storage: policy (size/count/extension limits) and local filesystem backend.

Implementations are async (aiofiles). Stored files get unique generated
names; metadata lives in a JSON sidecar next to each file.
"""

from thesis_support.infrastructure.storage.uploads import (
    LIMIT_FILE_COUNT,
    LIMIT_FILE_SIZE,
    LocalUploadStorage,
    UploadPolicy,
    file_extension,
    generate_unique_filename,
    is_stored_name,
)

__all__ = [
    "LIMIT_FILE_COUNT",
    "LIMIT_FILE_SIZE",
    "LocalUploadStorage",
    "UploadPolicy",
    "file_extension",
    "generate_unique_filename",
    "is_stored_name",
]
