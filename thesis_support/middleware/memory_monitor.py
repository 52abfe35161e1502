"""Memory monitoring middleware.

Samples process RSS when each HTTP response starts and logs a warning or
error when it crosses the configured thresholds. In debug mode the RSS is
also returned in an X-Memory-Usage-MB header.
Uses raw ASGI (no BaseHTTPMiddleware) for production-safe streaming and background tasks.
"""

import logging
from collections.abc import Callable

from thesis_support.shared.telemetry.memory import (
    LEVEL_CRITICAL,
    LEVEL_WARNING,
    MemorySnapshot,
    get_memory_snapshot,
)

logger = logging.getLogger(__name__)

MEMORY_HEADER = "X-Memory-Usage-MB"


def MemoryMonitorMiddleware(
    app: Callable,
    warning_threshold_mb: int,
    critical_threshold_mb: int,
    expose_header: bool = False,
    sampler: Callable[[], MemorySnapshot] | None = None,
) -> Callable:
    """Log high memory usage per request (and optionally expose it as a header). Raw ASGI."""

    def _sample() -> MemorySnapshot:
        if sampler is not None:
            return sampler()
        return get_memory_snapshot(warning_threshold_mb, critical_threshold_mb)

    async def asgi_app(scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await app(scope, receive, send)
            return

        async def send_wrapper(message: dict) -> None:
            if message["type"] == "http.response.start":
                snapshot = _sample()
                method = scope.get("method", "")
                path = scope.get("path", "")
                if snapshot.level == LEVEL_CRITICAL:
                    logger.error(
                        "Critical memory usage: %.1f MB (threshold %s MB) after %s %s",
                        snapshot.rss_mb,
                        critical_threshold_mb,
                        method,
                        path,
                    )
                elif snapshot.level == LEVEL_WARNING:
                    logger.warning(
                        "High memory usage: %.1f MB (threshold %s MB) after %s %s",
                        snapshot.rss_mb,
                        warning_threshold_mb,
                        method,
                        path,
                    )
                if expose_header:
                    headers = list(message.get("headers", []))
                    headers.append((MEMORY_HEADER.encode(), f"{snapshot.rss_mb:.2f}".encode()))
                    message["headers"] = headers
            await send(message)

        await app(scope, receive, send_wrapper)

    return asgi_app
