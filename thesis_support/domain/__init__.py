"""Domain layer: application exceptions independent of infrastructure."""

from thesis_support.domain.exceptions import (
    DatabaseUnavailableException,
    ResourceNotFoundException,
    SqlNotConfiguredException,
    ThesisSupportException,
    UnsupportedFileTypeException,
    UploadLimitExceededException,
    ValidationException,
)

__all__ = [
    "DatabaseUnavailableException",
    "ResourceNotFoundException",
    "SqlNotConfiguredException",
    "ThesisSupportException",
    "UnsupportedFileTypeException",
    "UploadLimitExceededException",
    "ValidationException",
]
