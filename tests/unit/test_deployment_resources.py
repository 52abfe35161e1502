"""Container memory limits, PostgreSQL tuning and compose rendering."""

import pytest
import yaml

from thesis_support.deployment import (
    BackendRuntime,
    DeploymentProfile,
    PostgresTuning,
    ServiceResources,
    dump_compose,
    format_docker_memory,
    format_postgres_memory,
    parse_memory,
    render_compose,
)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("512M", 512 * 1024**2),
        ("256m", 256 * 1024**2),
        ("1G", 1024**3),
        ("128MB", 128 * 1024**2),
        ("64kB", 64 * 1024),
        ("100", 100),
        (2048, 2048),
    ],
)
def test_parse_memory(value, expected: int) -> None:
    assert parse_memory(value) == expected


@pytest.mark.parametrize("value", ["", "12X", "M512", "-1M", -5])
def test_parse_memory_rejects_garbage(value) -> None:
    with pytest.raises(ValueError):
        parse_memory(value)


def test_formatters() -> None:
    assert format_docker_memory(512 * 1024**2) == "512M"
    assert format_docker_memory(1024**3) == "1G"
    assert format_docker_memory(1000) == "1000B"
    assert format_postgres_memory(128 * 1024**2) == "128MB"
    assert format_postgres_memory(64 * 1024) == "64kB"
    with pytest.raises(ValueError):
        format_postgres_memory(1000)


def test_service_resources_defaults() -> None:
    assert ServiceResources().to_compose() == {
        "resources": {
            "limits": {"memory": "512M"},
            "reservations": {"memory": "256M"},
        }
    }


def test_reservation_above_limit_rejected() -> None:
    with pytest.raises(ValueError, match="exceeds"):
        ServiceResources(memory_limit="256M", memory_reservation="512M")


def test_postgres_command_args() -> None:
    assert PostgresTuning().command_args() == [
        "postgres",
        "-c",
        "shared_buffers=128MB",
        "-c",
        "work_mem=4MB",
        "-c",
        "maintenance_work_mem=64MB",
        "-c",
        "effective_cache_size=256MB",
    ]


def test_postgres_settings_normalize_units() -> None:
    tuning = PostgresTuning(shared_buffers="1G", work_mem="8192kB")
    settings = tuning.settings()
    assert settings["shared_buffers"] == "1GB"
    assert settings["work_mem"] == "8MB"


def test_postgres_buffers_must_fit_container() -> None:
    PostgresTuning().check_fits("512M")
    with pytest.raises(ValueError, match="shared_buffers"):
        PostgresTuning(shared_buffers="512MB").check_fits("512M")
    with pytest.raises(ValueError, match="maintenance_work_mem"):
        PostgresTuning(shared_buffers="400MB", maintenance_work_mem="200MB").check_fits("512M")


def test_backend_runtime_environment() -> None:
    env = BackendRuntime().environment()
    assert env["MEMORY_WARNING_THRESHOLD_MB"] == "400"
    assert env["MEMORY_CRITICAL_THRESHOLD_MB"] == "480"
    assert env["GC_INTERVAL_SECONDS"] == "60"


def test_render_compose_default_profile() -> None:
    doc = render_compose(DeploymentProfile())
    services = doc["services"]
    assert set(services) == {"db", "redis", "backend", "frontend"}
    for service in services.values():
        assert service["deploy"]["resources"]["limits"]["memory"] == "512M"
        assert service["deploy"]["resources"]["reservations"]["memory"] == "256M"
    assert "shared_buffers=128MB" in services["db"]["command"]
    assert services["backend"]["environment"]["DATABASE_URL"].startswith(
        "postgresql+asyncpg://thesis:"
    )
    assert services["backend"]["depends_on"]["db"] == {"condition": "service_healthy"}


def test_dump_compose_is_block_yaml_in_order() -> None:
    doc = render_compose(DeploymentProfile())
    text = dump_compose(doc)
    assert "services:\n  db:\n    image: " in text
    assert list(yaml.safe_load(text)) == ["name", "services", "volumes"]
    assert yaml.safe_load(text) == doc


def test_render_compose_per_service_override() -> None:
    profile = DeploymentProfile()
    profile.services["backend"] = ServiceResources(memory_limit="1G", memory_reservation="512M")
    doc = render_compose(profile)
    assert doc["services"]["backend"]["deploy"]["resources"]["limits"]["memory"] == "1G"
    assert doc["services"]["db"]["deploy"]["resources"]["limits"]["memory"] == "512M"


def test_render_compose_rejects_oversized_postgres() -> None:
    profile = DeploymentProfile(postgres=PostgresTuning(shared_buffers="1GB"))
    with pytest.raises(ValueError):
        render_compose(profile)


def test_access_urls_and_credentials() -> None:
    profile = DeploymentProfile()
    assert profile.access_urls()["Frontend"] == "http://localhost:3000"
    assert profile.access_urls()["Backend API"] == "http://localhost:8000/api/v1"
    assert profile.sample_credentials()["Database user"] == "thesis"
