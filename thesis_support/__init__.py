"""Thesis Support System backend: platform layer (cache, uploads, pool, monitoring)."""

__version__ = "1.0.0"
