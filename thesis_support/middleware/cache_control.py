"""Cache-Control middleware.

Sets Cache-Control per asset class on GET/HEAD responses that do not
already carry one:

- static assets (js, css, images, fonts) outside the API: long max-age, immutable
- HTML pages: one-day max-age
- public API: short max-age with stale-while-revalidate
- everything else, and any error response: no-store

Uses raw ASGI (no BaseHTTPMiddleware) for production-safe streaming and background tasks.
"""

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import PurePosixPath

from thesis_support.core.constants import (
    ASSET_HTML,
    ASSET_OTHER,
    ASSET_PUBLIC_API,
    ASSET_STATIC,
    CACHE_CONTROL_IMMUTABLE,
    CACHE_CONTROL_NO_STORE,
    STATIC_ASSET_EXTENSIONS,
)

_CACHEABLE_METHODS = frozenset({"GET", "HEAD"})


@dataclass(frozen=True)
class CachePolicy:
    """max-age values (seconds) per asset class."""

    static_max_age: int = 31_536_000
    html_max_age: int = 86_400
    public_api_max_age: int = 300
    public_api_stale_while_revalidate: int = 60
    public_api_prefix: str = "/api/v1/public"
    api_prefix: str = "/api/"


def classify_asset(
    path: str,
    content_type: str | None,
    public_api_prefix: str,
    api_prefix: str = "/api/",
) -> str:
    """Return the asset class for a response path and content type.

    API paths outside the public prefix are never static or HTML, whatever
    their extension (uploaded files are served from the API).
    """
    prefix = public_api_prefix.rstrip("/")
    if path == prefix or path.startswith(prefix + "/"):
        return ASSET_PUBLIC_API
    if path.startswith(api_prefix):
        return ASSET_OTHER
    suffix = PurePosixPath(path).suffix.lower()
    if suffix in STATIC_ASSET_EXTENSIONS:
        return ASSET_STATIC
    if suffix in (".html", ".htm"):
        return ASSET_HTML
    if content_type and content_type.split(";", 1)[0].strip().lower() == "text/html":
        return ASSET_HTML
    return ASSET_OTHER


def cache_control_for(asset_class: str, policy: CachePolicy) -> str:
    """Return the Cache-Control header value for an asset class."""
    if asset_class == ASSET_STATIC:
        return f"public, max-age={policy.static_max_age}, {CACHE_CONTROL_IMMUTABLE}"
    if asset_class == ASSET_HTML:
        return f"public, max-age={policy.html_max_age}"
    if asset_class == ASSET_PUBLIC_API:
        value = f"public, max-age={policy.public_api_max_age}"
        if policy.public_api_stale_while_revalidate > 0:
            value += f", stale-while-revalidate={policy.public_api_stale_while_revalidate}"
        return value
    return CACHE_CONTROL_NO_STORE


def CacheControlMiddleware(app: Callable, policy: CachePolicy | None = None) -> Callable:
    """Add Cache-Control by asset class unless the route already set one. Raw ASGI."""
    resolved = policy or CachePolicy()

    async def asgi_app(scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await app(scope, receive, send)
            return
        method = scope.get("method", "GET")
        path = scope.get("path", "")

        async def send_wrapper(message: dict) -> None:
            if message["type"] == "http.response.start":
                headers = list(message.get("headers", []))
                names = {k.lower() for k, _ in headers}
                if b"cache-control" not in names:
                    status = message.get("status", 200)
                    if status >= 400 or method not in _CACHEABLE_METHODS:
                        value = CACHE_CONTROL_NO_STORE
                    else:
                        content_type = next(
                            (
                                v.decode("latin-1")
                                for k, v in headers
                                if k.lower() == b"content-type"
                            ),
                            None,
                        )
                        asset = classify_asset(
                            path, content_type, resolved.public_api_prefix, resolved.api_prefix
                        )
                        value = cache_control_for(asset, resolved)
                    headers.append((b"cache-control", value.encode()))
                    message["headers"] = headers
            await send(message)

        await app(scope, receive, send_wrapper)

    return asgi_app
