"""Core constants: cache key prefixes and Cache-Control building blocks.

Single source of truth for cache key structure (DRY). Used by
infrastructure cache and the public API endpoints.
"""

# Cache key prefixes (used with :component[:component...])
CACHE_PREFIX_PUBLIC = "public"
CACHE_PREFIX_FETCH = "fetch"

# Delimiter for composite keys
CACHE_KEY_SEP = ":"

# Cache-Control directives
CACHE_CONTROL_NO_STORE = "no-store"
CACHE_CONTROL_IMMUTABLE = "immutable"

# Asset classes (see app middleware cache_control)
ASSET_STATIC = "static"
ASSET_HTML = "html"
ASSET_PUBLIC_API = "public_api"
ASSET_OTHER = "other"

STATIC_ASSET_EXTENSIONS = frozenset(
    {
        ".js",
        ".mjs",
        ".css",
        ".map",
        ".png",
        ".jpg",
        ".jpeg",
        ".gif",
        ".svg",
        ".webp",
        ".avif",
        ".ico",
        ".woff",
        ".woff2",
        ".ttf",
        ".otf",
        ".eot",
        ".wasm",
    }
)
