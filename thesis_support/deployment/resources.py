"""Container resources and PostgreSQL memory tuning for the compose deployment.

All values are tuning parameters with defaults matching a small single-host
deployment (512M limit / 256M reservation per service). render_compose()
turns a DeploymentProfile into a docker-compose document and dump_compose()
serializes it as YAML for docker-compose.yml.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

import yaml

_UNITS = {
    "": 1,
    "b": 1,
    "k": 1024,
    "kb": 1024,
    "m": 1024**2,
    "mb": 1024**2,
    "g": 1024**3,
    "gb": 1024**3,
}
_MEMORY_RE = re.compile(r"^\s*(\d+)\s*([a-zA-Z]{0,2})\s*$")


def parse_memory(value: str | int) -> int:
    """Parse '512M', '1G', '64MB', '4096kB' or a byte count into bytes.

    Raises:
        ValueError: Unknown unit or malformed value.
    """
    if isinstance(value, int):
        if value < 0:
            raise ValueError(f"Memory size must be >= 0, got {value}")
        return value
    match = _MEMORY_RE.match(value)
    if not match:
        raise ValueError(f"Invalid memory size: {value!r}")
    number, unit = match.groups()
    multiplier = _UNITS.get(unit.lower())
    if multiplier is None:
        raise ValueError(f"Unknown memory unit in {value!r}")
    return int(number) * multiplier


def format_docker_memory(num_bytes: int) -> str:
    """Format bytes in docker style ('512M', '1G'), using the largest exact unit."""
    for suffix, size in (("G", 1024**3), ("M", 1024**2), ("K", 1024)):
        if num_bytes and num_bytes % size == 0:
            return f"{num_bytes // size}{suffix}"
    return f"{num_bytes}B"


def format_postgres_memory(num_bytes: int) -> str:
    """Format bytes as a PostgreSQL memory setting ('128MB', '4MB', '64kB')."""
    for suffix, size in (("GB", 1024**3), ("MB", 1024**2), ("kB", 1024)):
        if num_bytes and num_bytes % size == 0:
            return f"{num_bytes // size}{suffix}"
    raise ValueError(f"PostgreSQL memory settings must be a multiple of 1kB, got {num_bytes}")


@dataclass(frozen=True)
class ServiceResources:
    """Memory limit and reservation for one container."""

    memory_limit: str = "512M"
    memory_reservation: str = "256M"

    def __post_init__(self) -> None:
        if parse_memory(self.memory_reservation) > parse_memory(self.memory_limit):
            raise ValueError(
                f"memory_reservation {self.memory_reservation} exceeds "
                f"memory_limit {self.memory_limit}"
            )

    def to_compose(self) -> dict[str, Any]:
        return {
            "resources": {
                "limits": {"memory": format_docker_memory(parse_memory(self.memory_limit))},
                "reservations": {
                    "memory": format_docker_memory(parse_memory(self.memory_reservation))
                },
            }
        }


@dataclass(frozen=True)
class PostgresTuning:
    """PostgreSQL memory parameters passed as `postgres -c key=value`."""

    shared_buffers: str = "128MB"
    work_mem: str = "4MB"
    maintenance_work_mem: str = "64MB"
    effective_cache_size: str = "256MB"

    def settings(self) -> dict[str, str]:
        """Return the parameters normalized to PostgreSQL units."""
        return {
            "shared_buffers": format_postgres_memory(parse_memory(self.shared_buffers)),
            "work_mem": format_postgres_memory(parse_memory(self.work_mem)),
            "maintenance_work_mem": format_postgres_memory(
                parse_memory(self.maintenance_work_mem)
            ),
            "effective_cache_size": format_postgres_memory(
                parse_memory(self.effective_cache_size)
            ),
        }

    def command_args(self) -> list[str]:
        """Return ['postgres', '-c', 'shared_buffers=128MB', ...]."""
        args = ["postgres"]
        for key, value in self.settings().items():
            args.extend(["-c", f"{key}={value}"])
        return args

    def check_fits(self, container_limit: str) -> None:
        """Raise ValueError if the buffers cannot fit in the container memory limit."""
        limit = parse_memory(container_limit)
        buffers = parse_memory(self.shared_buffers)
        if buffers >= limit:
            raise ValueError(
                f"shared_buffers {self.shared_buffers} must be below the "
                f"container memory limit {container_limit}"
            )
        if parse_memory(self.maintenance_work_mem) + buffers > limit:
            raise ValueError(
                "shared_buffers + maintenance_work_mem exceed the container memory limit"
            )


@dataclass(frozen=True)
class BackendRuntime:
    """Backend process memory flags (heap budget hint and GC interval)."""

    memory_warning_threshold_mb: int = 400
    memory_critical_threshold_mb: int = 480
    gc_interval_seconds: int = 60
    workers: int = 1

    def environment(self) -> dict[str, str]:
        """Environment variables understood by thesis_support.core.config and uvicorn."""
        return {
            "MEMORY_WARNING_THRESHOLD_MB": str(self.memory_warning_threshold_mb),
            "MEMORY_CRITICAL_THRESHOLD_MB": str(self.memory_critical_threshold_mb),
            "GC_INTERVAL_SECONDS": str(self.gc_interval_seconds),
            "WEB_CONCURRENCY": str(self.workers),
        }


def _default_services() -> dict[str, ServiceResources]:
    return {name: ServiceResources() for name in ("db", "redis", "backend", "frontend")}


@dataclass
class DeploymentProfile:
    """Everything needed to render the compose file and print access details."""

    project_name: str = "thesis-support"
    services: dict[str, ServiceResources] = field(default_factory=_default_services)
    postgres: PostgresTuning = field(default_factory=PostgresTuning)
    backend: BackendRuntime = field(default_factory=BackendRuntime)
    postgres_image: str = "postgres:16-alpine"
    redis_image: str = "redis:7-alpine"
    db_name: str = "thesis_support"
    db_user: str = "thesis"
    db_password: str = "thesis_dev_password"
    frontend_port: int = 3000
    backend_port: int = 8000
    db_port: int = 5432
    redis_port: int = 6379
    frontend_context: str = "./frontend"
    backend_context: str = "."

    def resources_for(self, service: str) -> ServiceResources:
        return self.services.get(service, ServiceResources())

    @property
    def database_url(self) -> str:
        """Async SQLAlchemy URL as seen from inside the compose network."""
        return (
            f"postgresql+asyncpg://{self.db_user}:{self.db_password}"
            f"@db:5432/{self.db_name}"
        )

    def access_urls(self) -> dict[str, str]:
        return {
            "Frontend": f"http://localhost:{self.frontend_port}",
            "Backend API": f"http://localhost:{self.backend_port}/api/v1",
            "API docs": f"http://localhost:{self.backend_port}/docs",
            "Database": f"localhost:{self.db_port}",
        }

    def sample_credentials(self) -> dict[str, str]:
        return {
            "Database name": self.db_name,
            "Database user": self.db_user,
            "Database password": self.db_password,
        }


def render_compose(profile: DeploymentProfile) -> dict[str, Any]:
    """Build the docker-compose document for profile.

    Raises:
        ValueError: PostgreSQL tuning does not fit the db container limit.
    """
    db_resources = profile.resources_for("db")
    profile.postgres.check_fits(db_resources.memory_limit)
    backend_env = {
        "DATABASE_URL": profile.database_url,
        "REDIS_HOST": "redis",
        "REDIS_PORT": "6379",
        "UPLOAD_DIR": "/app/uploads",
        **profile.backend.environment(),
    }
    return {
        "name": profile.project_name,
        "services": {
            "db": {
                "image": profile.postgres_image,
                "command": profile.postgres.command_args(),
                "environment": {
                    "POSTGRES_DB": profile.db_name,
                    "POSTGRES_USER": profile.db_user,
                    "POSTGRES_PASSWORD": profile.db_password,
                },
                "ports": [f"{profile.db_port}:5432"],
                "volumes": ["db_data:/var/lib/postgresql/data"],
                "healthcheck": {
                    "test": ["CMD-SHELL", f"pg_isready -U {profile.db_user} -d {profile.db_name}"],
                    "interval": "5s",
                    "timeout": "5s",
                    "retries": 10,
                },
                "deploy": db_resources.to_compose(),
            },
            "redis": {
                "image": profile.redis_image,
                "ports": [f"{profile.redis_port}:6379"],
                "deploy": profile.resources_for("redis").to_compose(),
            },
            "backend": {
                "build": profile.backend_context,
                "environment": backend_env,
                "ports": [f"{profile.backend_port}:8000"],
                "volumes": ["uploads:/app/uploads"],
                "depends_on": {
                    "db": {"condition": "service_healthy"},
                    "redis": {"condition": "service_started"},
                },
                "deploy": profile.resources_for("backend").to_compose(),
            },
            "frontend": {
                "build": profile.frontend_context,
                "ports": [f"{profile.frontend_port}:3000"],
                "depends_on": ["backend"],
                "deploy": profile.resources_for("frontend").to_compose(),
            },
        },
        "volumes": {"db_data": {}, "uploads": {}},
    }


def dump_compose(document: dict[str, Any]) -> str:
    """Serialize a compose document as block-style YAML, keeping key order."""
    return yaml.safe_dump(document, default_flow_style=False, sort_keys=False)
