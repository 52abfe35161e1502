"""Pytest configuration and fixtures for thesis_support.

Environment is pinned before the app is imported: no database, Redis
disabled, uploads under a temporary directory. HTTP tests use
thesis_support.main:app through httpx ASGITransport (no lifespan), so
app-state services are created lazily by the dependencies or injected
by fixtures here.
"""

import os
import shutil
import tempfile

_TEST_UPLOAD_DIR = tempfile.mkdtemp(prefix="thesis-support-tests-")
os.environ["UPLOAD_DIR"] = _TEST_UPLOAD_DIR
os.environ["DATABASE_URL"] = ""
os.environ["REDIS_ENABLED"] = "false"
os.environ["GC_INTERVAL_SECONDS"] = "0"

import pytest
from httpx import ASGITransport, AsyncClient

from thesis_support.api.v1.dependencies import get_upload_storage
from thesis_support.core.config import get_settings
from thesis_support.infrastructure.cache import CacheService, StaleWhileRevalidateCache
from thesis_support.infrastructure.storage import LocalUploadStorage, UploadPolicy
from thesis_support.main import app
from tests.fakes import FakeClock, FakeRedis


def pytest_sessionfinish(session, exitstatus) -> None:
    shutil.rmtree(_TEST_UPLOAD_DIR, ignore_errors=True)


@pytest.fixture
async def client() -> AsyncClient:
    """Async HTTP client against the FastAPI app (ASGI)."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def clock() -> FakeClock:
    """Controllable unix-seconds clock shared by FakeRedis and SWR tests."""
    return FakeClock(start=1_700_000_000.0)


@pytest.fixture
def fake_redis(clock: FakeClock) -> FakeRedis:
    """In-memory stand-in for redis.asyncio.Redis."""
    return FakeRedis(clock=clock)


@pytest.fixture
async def cache(fake_redis: FakeRedis) -> CacheService:
    """Connected CacheService backed by FakeRedis."""
    service = CacheService(redis_client=fake_redis)
    await service.connect()
    yield service
    await service.disconnect()


@pytest.fixture
def upload_policy() -> UploadPolicy:
    """Small limits so size tests stay fast."""
    return UploadPolicy(
        max_file_size=1024,
        max_files=3,
        allowed_extensions=frozenset({".pdf", ".txt", ".png"}),
    )


@pytest.fixture
def upload_storage(tmp_path, upload_policy: UploadPolicy) -> LocalUploadStorage:
    """LocalUploadStorage rooted in a per-test directory."""
    return LocalUploadStorage(tmp_path / "uploads", upload_policy)


@pytest.fixture
def app_upload_storage(upload_storage: LocalUploadStorage):
    """Route the API's upload dependency to the per-test storage."""
    app.dependency_overrides[get_upload_storage] = lambda: upload_storage
    yield upload_storage
    app.dependency_overrides.pop(get_upload_storage, None)


@pytest.fixture
async def app_cache(cache: CacheService, clock: FakeClock):
    """Install a FakeRedis-backed cache and SWR cache on app.state."""
    settings = get_settings()
    previous = (getattr(app.state, "cache", None), getattr(app.state, "swr_cache", None))
    swr = StaleWhileRevalidateCache(
        cache,
        fresh_ttl=settings.cache_ttl_public_api,
        stale_ttl=settings.cache_stale_ttl,
        clock=clock,
    )
    app.state.cache = cache
    app.state.swr_cache = swr
    yield swr
    await swr.aclose()
    app.state.cache, app.state.swr_cache = previous
