"""Centralized exception handlers for the FastAPI app.

Register with register_exception_handlers(app). Maps domain, storage and
pool exceptions to HTTP responses with the body
{"error": code, "message": ..., "details": {...}}.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from starlette.exceptions import HTTPException as StarletteHTTPException

from thesis_support.core.config import get_settings
from thesis_support.domain.exceptions import (
    DatabaseUnavailableException,
    ThesisSupportException,
)

logger = logging.getLogger(__name__)

# Map error_code to HTTP status; unknown codes default to 400.
_ERROR_CODE_STATUS: dict[str, int] = {
    "RESOURCE_NOT_FOUND": 404,
    "STORAGE_NOT_FOUND": 404,
    "VALIDATION_ERROR": 400,
    "LIMIT_FILE_COUNT": 400,
    "LIMIT_FILE_SIZE": 413,
    "UNSUPPORTED_FILE_TYPE": 415,
    "STORAGE_PERMISSION_ERROR": 400,
    "STORAGE_UPLOAD_ERROR": 500,
    "STORAGE_DELETE_ERROR": 500,
    "SERVICE_UNAVAILABLE": 503,
    "DATABASE_UNAVAILABLE": 503,
}


def status_for(exc: ThesisSupportException) -> int:
    """Return the HTTP status code for an application exception."""
    return _ERROR_CODE_STATUS.get(exc.error_code, 400)


def _app_exception_handler(
    request: Request, exc: ThesisSupportException
) -> JSONResponse:
    """Return JSON from ThesisSupportException.to_dict() with the mapped status code."""
    status = status_for(exc)
    if status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=status, content=exc.to_dict())


def _pool_timeout_handler(request: Request, exc: PoolTimeoutError) -> JSONResponse:
    """Pool checkout timed out: 503 DATABASE_UNAVAILABLE."""
    settings = get_settings()
    mapped = DatabaseUnavailableException(settings.db_pool_connect_timeout_seconds)
    logger.warning("Connection pool exhausted on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=503, content=mapped.to_dict())


def _validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return 422 with validation error details."""
    return JSONResponse(
        status_code=422,
        content={
            "error": "VALIDATION_ERROR",
            "message": "Request validation failed",
            "details": jsonable_errors(exc),
        },
    )


def jsonable_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    """Return validation errors without non-serializable ctx/input values."""
    return [
        {k: v for k, v in err.items() if k in ("type", "loc", "msg")}
        for err in exc.errors()
    ]


def _http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Return JSON for Starlette HTTP exceptions (status + detail)."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": "HTTP_ERROR", "message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


def _generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Return 500; include detail only when debug is True."""
    logger.exception("Unhandled exception: %s", exc)
    settings = get_settings()
    detail: Any = str(exc) if settings.debug else "Internal server error"
    return JSONResponse(
        status_code=500,
        content={"error": "INTERNAL_ERROR", "message": detail},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers on the FastAPI app.

    Handlers: ThesisSupportException (and subclasses), pool timeout,
    RequestValidationError, StarletteHTTPException, generic Exception.
    """
    app.add_exception_handler(ThesisSupportException, _app_exception_handler)
    app.add_exception_handler(PoolTimeoutError, _pool_timeout_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(Exception, _generic_exception_handler)
