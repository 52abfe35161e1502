"""Utility helpers (datetime)."""

from thesis_support.shared.utils.datetime import from_timestamp_utc, utc_now

__all__ = ["from_timestamp_utc", "utc_now"]
