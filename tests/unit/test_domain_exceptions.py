"""Tests for domain exceptions (error_code, message, details) and HTTP status mapping."""

import pytest

from thesis_support.core.exception_handlers import status_for
from thesis_support.domain.exceptions import (
    DatabaseUnavailableException,
    ResourceNotFoundException,
    SqlNotConfiguredException,
    ThesisSupportException,
    UnsupportedFileTypeException,
    UploadLimitExceededException,
    ValidationException,
)
from thesis_support.infrastructure.exceptions import (
    StorageNotFoundError,
    StoragePermissionError,
)


def test_base_exception_default_error_code() -> None:
    """Base exception uses class name as error_code when not provided."""
    exc = ThesisSupportException("Something failed")
    assert exc.message == "Something failed"
    assert exc.error_code == "ThesisSupportException"
    assert exc.details == {}


def test_to_dict() -> None:
    exc = ThesisSupportException("Oops", error_code="CUSTOM", details={"key": "value"})
    assert exc.to_dict() == {"error": "CUSTOM", "message": "Oops", "details": {"key": "value"}}


def test_validation_exception() -> None:
    """ValidationException sets VALIDATION_ERROR and optional field in details."""
    exc = ValidationException("Invalid format", field="filename")
    assert exc.error_code == "VALIDATION_ERROR"
    assert exc.details == {"field": "filename"}
    assert ValidationException("Invalid").details == {}


def test_resource_not_found() -> None:
    exc = ResourceNotFoundException("File", "files-1-2.pdf")
    assert exc.message == "File not found: files-1-2.pdf"
    assert exc.details == {"resource_type": "File", "resource_id": "files-1-2.pdf"}


def test_upload_count_limit_message() -> None:
    exc = UploadLimitExceededException("LIMIT_FILE_COUNT", limit=5, actual=6)
    assert exc.message == "Too many files: at most 5 allowed per request"
    assert exc.details == {"limit": 5, "actual": 6}


def test_upload_size_limit_message() -> None:
    exc = UploadLimitExceededException("LIMIT_FILE_SIZE", limit=100, actual=101, filename="a.pdf")
    assert exc.message == "File too large: at most 100 bytes allowed"
    assert exc.details["filename"] == "a.pdf"


def test_unsupported_file_type() -> None:
    exc = UnsupportedFileTypeException("run.exe", [".pdf"])
    assert exc.error_code == "UNSUPPORTED_FILE_TYPE"
    assert exc.details == {"filename": "run.exe", "allowed_extensions": [".pdf"]}


def test_database_unavailable() -> None:
    exc = DatabaseUnavailableException(2, reason="QueuePool limit reached")
    assert exc.message == "Database connection not available within 2 seconds"
    assert exc.details == {"timeout_seconds": 2, "reason": "QueuePool limit reached"}


@pytest.mark.parametrize(
    ("exc", "status"),
    [
        (ValidationException("bad"), 400),
        (ResourceNotFoundException("File", "x"), 404),
        (UploadLimitExceededException("LIMIT_FILE_COUNT", 5, 6), 400),
        (UploadLimitExceededException("LIMIT_FILE_SIZE", 5, 6), 413),
        (UnsupportedFileTypeException("a.exe", []), 415),
        (SqlNotConfiguredException(), 503),
        (DatabaseUnavailableException(2), 503),
        (StorageNotFoundError("x"), 404),
        (StoragePermissionError("../x", "path_validation"), 400),
        (ThesisSupportException("unknown"), 400),
    ],
)
def test_status_for(exc: ThesisSupportException, status: int) -> None:
    assert status_for(exc) == status
