"""HTTP middleware: timeout, request size limit, request ID, memory monitor, cache control.

Applied in main app; order matters (last added = outermost).
Import and use from thesis_support.main.
"""

from thesis_support.middleware.cache_control import (
    CacheControlMiddleware,
    CachePolicy,
    cache_control_for,
    classify_asset,
)
from thesis_support.middleware.memory_monitor import MemoryMonitorMiddleware
from thesis_support.middleware.request_id import RequestIDMiddleware
from thesis_support.middleware.request_size_limit import RequestSizeLimitMiddleware
from thesis_support.middleware.timeout import TimeoutMiddleware

__all__ = [
    "CacheControlMiddleware",
    "CachePolicy",
    "MemoryMonitorMiddleware",
    "RequestIDMiddleware",
    "RequestSizeLimitMiddleware",
    "TimeoutMiddleware",
    "cache_control_for",
    "classify_asset",
]
