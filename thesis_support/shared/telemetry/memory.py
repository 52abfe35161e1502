"""Process memory sampling and periodic garbage collection.

Sampling uses psutil (resident set size of the current process).
run_periodic_gc is started by the lifespan when gc_interval_seconds > 0.
"""

import asyncio
import gc
import logging
from dataclasses import asdict, dataclass
from typing import Any

import psutil

logger = logging.getLogger(__name__)

_MB = 1024 * 1024

LEVEL_OK = "ok"
LEVEL_WARNING = "warning"
LEVEL_CRITICAL = "critical"

_process: psutil.Process | None = None


def _get_process() -> psutil.Process:
    global _process
    if _process is None:
        _process = psutil.Process()
    return _process


@dataclass(frozen=True)
class MemorySnapshot:
    """Memory usage of the current process at one point in time."""

    rss_mb: float
    vms_mb: float
    percent: float
    warning_threshold_mb: int
    critical_threshold_mb: int

    @property
    def level(self) -> str:
        if self.rss_mb >= self.critical_threshold_mb:
            return LEVEL_CRITICAL
        if self.rss_mb >= self.warning_threshold_mb:
            return LEVEL_WARNING
        return LEVEL_OK

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["level"] = self.level
        return data


def get_memory_snapshot(
    warning_threshold_mb: int,
    critical_threshold_mb: int,
    process: psutil.Process | None = None,
) -> MemorySnapshot:
    """Sample RSS/VMS of the process and classify against the thresholds."""
    proc = process or _get_process()
    info = proc.memory_info()
    return MemorySnapshot(
        rss_mb=round(info.rss / _MB, 2),
        vms_mb=round(info.vms / _MB, 2),
        percent=round(proc.memory_percent(), 2),
        warning_threshold_mb=warning_threshold_mb,
        critical_threshold_mb=critical_threshold_mb,
    )


def collect_garbage() -> int:
    """Run a full gc.collect() and return the number of unreachable objects found."""
    collected = gc.collect()
    logger.debug("gc.collect() freed %s objects", collected)
    return collected


async def run_periodic_gc(interval_seconds: float) -> None:
    """Call collect_garbage every interval_seconds until cancelled."""
    logger.info("Periodic garbage collection every %ss", interval_seconds)
    while True:
        await asyncio.sleep(interval_seconds)
        await asyncio.to_thread(collect_garbage)
