"""Domain exceptions for the Thesis Support backend.

Defines application-level exceptions independent of infrastructure
concerns. The presentation layer maps them to HTTP responses in
thesis_support.core.exception_handlers.
"""

from typing import Any


class ThesisSupportException(Exception):
    """Base exception for all Thesis Support application errors.

    All custom exceptions should inherit from this class to allow
    consistent error handling and logging. Presentation layer maps
    these to HTTP responses using message, error_code, and details.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. field, limit).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON error body used by the API."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ValidationException(ThesisSupportException):
    """Raised when input validation fails (e.g. invalid format or range)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize with message and optional field name.

        Args:
            message: Description of the validation failure.
            field: Optional field or attribute that failed validation.
        """
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class ResourceNotFoundException(ThesisSupportException):
    """Raised when a requested resource does not exist."""

    def __init__(self, resource_type: str, resource_id: str) -> None:
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            "RESOURCE_NOT_FOUND",
            {"resource_type": resource_type, "resource_id": resource_id},
        )


class UploadLimitExceededException(ThesisSupportException):
    """Raised when an upload exceeds the file count or per-file size limit.

    error_code is LIMIT_FILE_COUNT or LIMIT_FILE_SIZE.
    """

    def __init__(
        self,
        error_code: str,
        limit: int,
        actual: int,
        filename: str | None = None,
    ) -> None:
        """Initialize with the violated limit.

        Args:
            error_code: LIMIT_FILE_COUNT or LIMIT_FILE_SIZE.
            limit: Configured maximum (files or bytes).
            actual: Observed value (files or bytes read so far).
            filename: Original filename for size violations.
        """
        if error_code == "LIMIT_FILE_COUNT":
            message = f"Too many files: at most {limit} allowed per request"
        else:
            message = f"File too large: at most {limit} bytes allowed"
        details: dict[str, Any] = {"limit": limit, "actual": actual}
        if filename:
            details["filename"] = filename
        super().__init__(message, error_code, details)


class UnsupportedFileTypeException(ThesisSupportException):
    """Raised when an uploaded file extension is not allowed."""

    def __init__(self, filename: str, allowed: list[str]) -> None:
        super().__init__(
            f"File type not allowed: {filename}",
            "UNSUPPORTED_FILE_TYPE",
            {"filename": filename, "allowed_extensions": allowed},
        )


class SqlNotConfiguredException(ThesisSupportException):
    """Raised when an operation requires Postgres but DATABASE_URL is not set."""

    def __init__(self) -> None:
        super().__init__(
            message="This operation requires a SQL database that is not configured.",
            error_code="SERVICE_UNAVAILABLE",
        )


class DatabaseUnavailableException(ThesisSupportException):
    """Raised when no pooled connection could be obtained within the connect timeout."""

    def __init__(self, timeout_seconds: float, reason: str | None = None) -> None:
        """Initialize with the timeout that elapsed.

        Args:
            timeout_seconds: Pool checkout / connect timeout that expired.
            reason: Optional underlying error text.
        """
        details: dict[str, Any] = {"timeout_seconds": timeout_seconds}
        if reason:
            details["reason"] = reason
        super().__init__(
            f"Database connection not available within {timeout_seconds} seconds",
            "DATABASE_UNAVAILABLE",
            details,
        )
