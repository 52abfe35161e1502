"""Deployment: container resources, compose rendering and the local setup sequence."""

from thesis_support.deployment.bootstrap import (
    CommandResult,
    EnvironmentSetup,
    SetupError,
    subprocess_runner,
)
from thesis_support.deployment.resources import (
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

__all__ = [
    "BackendRuntime",
    "CommandResult",
    "DeploymentProfile",
    "EnvironmentSetup",
    "PostgresTuning",
    "ServiceResources",
    "SetupError",
    "dump_compose",
    "format_docker_memory",
    "format_postgres_memory",
    "parse_memory",
    "render_compose",
    "subprocess_runner",
]
