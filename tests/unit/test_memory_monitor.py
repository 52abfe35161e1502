"""Memory snapshots, thresholds and the monitoring middleware."""

import logging
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from thesis_support.middleware import MemoryMonitorMiddleware
from thesis_support.middleware.memory_monitor import MEMORY_HEADER
from thesis_support.shared.telemetry.memory import (
    LEVEL_CRITICAL,
    LEVEL_OK,
    LEVEL_WARNING,
    MemorySnapshot,
    collect_garbage,
    get_memory_snapshot,
)

MB = 1024 * 1024
LOGGER = "thesis_support.middleware.memory_monitor"


def _snapshot(rss_mb: float) -> MemorySnapshot:
    return MemorySnapshot(
        rss_mb=rss_mb,
        vms_mb=rss_mb * 2,
        percent=1.0,
        warning_threshold_mb=400,
        critical_threshold_mb=480,
    )


@pytest.mark.parametrize(
    ("rss", "level"),
    [(100.0, LEVEL_OK), (400.0, LEVEL_WARNING), (479.9, LEVEL_WARNING), (480.0, LEVEL_CRITICAL)],
)
def test_level(rss: float, level: str) -> None:
    assert _snapshot(rss).level == level


def test_get_memory_snapshot_reads_process() -> None:
    process = MagicMock()
    process.memory_info.return_value = SimpleNamespace(rss=450 * MB, vms=900 * MB)
    process.memory_percent.return_value = 12.345
    snapshot = get_memory_snapshot(400, 480, process=process)
    assert snapshot.rss_mb == 450.0
    assert snapshot.vms_mb == 900.0
    assert snapshot.percent == 12.35
    assert snapshot.to_dict()["level"] == LEVEL_WARNING


def test_get_memory_snapshot_current_process() -> None:
    snapshot = get_memory_snapshot(400, 480)
    assert snapshot.rss_mb > 0


def test_collect_garbage_returns_count() -> None:
    assert collect_garbage() >= 0


def _levels(caplog: pytest.LogCaptureFixture) -> list[int]:
    return [r.levelno for r in caplog.records if r.name == LOGGER]


def _client(rss_mb: float, expose_header: bool = False) -> AsyncClient:
    inner = FastAPI()

    @inner.get("/thesis")
    def thesis() -> dict:
        return {"ok": True}

    wrapped = MemoryMonitorMiddleware(
        inner,
        warning_threshold_mb=400,
        critical_threshold_mb=480,
        expose_header=expose_header,
        sampler=lambda: _snapshot(rss_mb),
    )
    return AsyncClient(transport=ASGITransport(app=wrapped), base_url="http://test")


async def test_no_log_below_warning(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.WARNING, logger=LOGGER)
    async with _client(120.0) as ac:
        response = await ac.get("/thesis")
    assert response.status_code == 200
    assert MEMORY_HEADER not in response.headers
    assert _levels(caplog) == []


async def test_warning_logged(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.WARNING, logger=LOGGER)
    async with _client(420.0) as ac:
        await ac.get("/thesis")
    assert _levels(caplog) == [logging.WARNING]
    assert "High memory usage: 420.0 MB" in caplog.text
    assert "GET /thesis" in caplog.text


async def test_critical_logged_as_error(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.WARNING, logger=LOGGER)
    async with _client(500.0) as ac:
        await ac.get("/thesis")
    assert _levels(caplog) == [logging.ERROR]
    assert "Critical memory usage" in caplog.text


async def test_header_exposed_in_debug() -> None:
    async with _client(123.456, expose_header=True) as ac:
        response = await ac.get("/thesis")
    assert response.headers[MEMORY_HEADER] == "123.46"
