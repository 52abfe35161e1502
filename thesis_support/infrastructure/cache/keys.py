"""Cache key builders. Single place for key format (DRY).

Key components must not contain CACHE_KEY_SEP to avoid ambiguous or
colliding keys.
"""

from thesis_support.core.constants import (
    CACHE_KEY_SEP,
    CACHE_PREFIX_FETCH,
    CACHE_PREFIX_PUBLIC,
)


def _validate_key_component(value: str, name: str) -> None:
    """Raise ValueError if value is empty or contains the cache key separator.

    Args:
        value: String component used in a cache key.
        name: Name of the component (for error message).

    Raises:
        ValueError: If value is empty or contains CACHE_KEY_SEP.
    """
    if not value:
        raise ValueError(f"Cache key component {name!r} must not be empty")
    if CACHE_KEY_SEP in value:
        raise ValueError(
            f"Cache key component {name!r} must not contain separator {CACHE_KEY_SEP!r}"
        )


def build_key(prefix: str, *components: str) -> str:
    """Join prefix and validated components with CACHE_KEY_SEP."""
    _validate_key_component(prefix, "prefix")
    for i, component in enumerate(components):
        _validate_key_component(component, f"component[{i}]")
    return CACHE_KEY_SEP.join((prefix, *components))


def public_key(resource: str) -> str:
    """Cache key for a public API resource (e.g. 'status')."""
    return build_key(CACHE_PREFIX_PUBLIC, resource)


def fetch_key(namespace: str, identifier: str) -> str:
    """Cache key for a get-or-fetch lookup (namespace + identifier)."""
    return build_key(CACHE_PREFIX_FETCH, namespace, identifier)


def prefix_pattern(prefix: str) -> str:
    """SCAN match pattern for every key under prefix."""
    _validate_key_component(prefix, "prefix")
    return f"{prefix}{CACHE_KEY_SEP}*"
