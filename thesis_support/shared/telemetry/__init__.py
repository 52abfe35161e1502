"""Shared telemetry: logging setup and process memory sampling."""

from thesis_support.shared.telemetry.logging import setup_logging
from thesis_support.shared.telemetry.memory import (
    MemorySnapshot,
    collect_garbage,
    get_memory_snapshot,
    run_periodic_gc,
)

__all__ = [
    "MemorySnapshot",
    "collect_garbage",
    "get_memory_snapshot",
    "run_periodic_gc",
    "setup_logging",
]
