"""FastAPI application entry point.

Wiring only: lifespan, exception handlers, middleware, routers, static files.
See thesis_support.core.lifespan and thesis_support.core.exception_handlers.

Settings are loaded inside create_app() so that tests can set env (and
clear the get_settings cache) before calling create_app().
"""

from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse
from fastapi.staticfiles import StaticFiles
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from thesis_support.api.v1 import api_router
from thesis_support.core.config import get_settings
from thesis_support.core.exception_handlers import register_exception_handlers
from thesis_support.core.lifespan import create_lifespan
from thesis_support.core.limiter import limiter
from thesis_support.middleware import (
    CacheControlMiddleware,
    CachePolicy,
    MemoryMonitorMiddleware,
    RequestIDMiddleware,
    RequestSizeLimitMiddleware,
    TimeoutMiddleware,
)
from thesis_support.pages import render_root_page


def create_app() -> FastAPI:
    """Build and return the FastAPI application. Settings are resolved here (deferred from import)."""
    settings = get_settings()
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=create_lifespan,
    )

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    register_exception_handlers(app)

    # Middleware: last added = outermost. Request flow:
    # timeout -> size limit -> request ID -> memory monitor -> cache control -> CORS.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in settings.allowed_origins.split(",") if o.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(
        CacheControlMiddleware,
        policy=CachePolicy(
            static_max_age=settings.cache_control_static_max_age,
            html_max_age=settings.cache_control_html_max_age,
            public_api_max_age=settings.cache_control_public_api_max_age,
            public_api_stale_while_revalidate=settings.cache_stale_ttl,
            public_api_prefix=settings.public_api_prefix,
        ),
    )
    if settings.memory_monitor_enabled:
        app.add_middleware(
            MemoryMonitorMiddleware,
            warning_threshold_mb=settings.memory_warning_threshold_mb,
            critical_threshold_mb=settings.memory_critical_threshold_mb,
            expose_header=settings.debug,
        )
    app.add_middleware(RequestIDMiddleware, header_name=settings.request_id_header)
    app.add_middleware(RequestSizeLimitMiddleware, max_bytes=settings.max_request_body_size)
    app.add_middleware(TimeoutMiddleware, timeout_seconds=settings.request_timeout_seconds)

    app.include_router(api_router, prefix="/api/v1")

    if settings.static_dir and Path(settings.static_dir).is_dir():
        app.mount(
            settings.static_url_path,
            StaticFiles(directory=settings.static_dir),
            name="static",
        )

    @app.get("/", response_class=HTMLResponse)
    def root() -> HTMLResponse:
        """Landing page with links to API documentation."""
        return HTMLResponse(content=render_root_page(settings.app_name, settings.app_version))

    return app


app = create_app()
