"""Local environment setup: build images, start the database, wait, start everything.

EnvironmentSetup shells out to docker compose through a CommandRunner so the
sequence can be tested without Docker. A missing compose file is rendered
from the profile once the engine check has passed. Each step raises
SetupError naming the step on failure; the database wait is bounded and
only warns when the database is still not ready.
"""

from __future__ import annotations

import logging
import subprocess
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from thesis_support.deployment.resources import DeploymentProfile, dump_compose, render_compose

logger = logging.getLogger(__name__)

STEP_CHECK_ENGINE = "check_engine"
STEP_COMPOSE_FILE = "compose_file"
STEP_BUILD = "build_images"
STEP_START_DB = "start_database"
STEP_WAIT_DB = "wait_for_database"
STEP_START_ALL = "start_services"

ENGINE_MISSING_MESSAGE = (
    "Docker is not installed or not running. Install Docker Desktop "
    "(or Docker Engine with the compose plugin) and try again."
)


class SetupError(Exception):
    """A setup step failed."""

    def __init__(self, step: str, message: str, returncode: int | None = None) -> None:
        self.step = step
        self.returncode = returncode
        super().__init__(f"[{step}] {message}")


@dataclass(frozen=True)
class CommandResult:
    """Exit status and captured output of one command."""

    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandRunner(Protocol):
    def __call__(self, args: Sequence[str], capture: bool = False) -> CommandResult: ...


def subprocess_runner(args: Sequence[str], capture: bool = False) -> CommandResult:
    """Run args with subprocess; a missing executable becomes returncode 127."""
    logger.debug("Running: %s", " ".join(args))
    try:
        completed = subprocess.run(
            list(args),
            check=False,
            capture_output=capture,
            text=True,
        )
    except FileNotFoundError as e:
        return CommandResult(returncode=127, stderr=str(e))
    return CommandResult(
        returncode=completed.returncode,
        stdout=completed.stdout or "",
        stderr=completed.stderr or "",
    )


@dataclass
class EnvironmentSetup:
    """Drive docker compose through the setup sequence."""

    profile: DeploymentProfile = field(default_factory=DeploymentProfile)
    compose_file: str = "docker-compose.yml"
    runner: CommandRunner = subprocess_runner
    engine: str = "docker"
    wait_attempts: int = 30
    wait_interval_seconds: float = 2.0
    sleep: Callable[[float], None] = time.sleep
    echo: Callable[[str], None] = print

    def _compose(self, *args: str) -> list[str]:
        return [self.engine, "compose", "-f", self.compose_file, *args]

    def _run_step(self, step: str, args: Sequence[str]) -> None:
        logger.info("Setup step %s: %s", step, " ".join(args))
        result = self.runner(args)
        if not result.ok:
            raise SetupError(
                step,
                f"command failed with exit code {result.returncode}: {' '.join(args)}",
                result.returncode,
            )

    def check_engine(self) -> str:
        """Verify the container engine and compose plugin respond; return the engine version."""
        version = self.runner([self.engine, "--version"], capture=True)
        if not version.ok:
            raise SetupError(STEP_CHECK_ENGINE, ENGINE_MISSING_MESSAGE, version.returncode)
        compose = self.runner([self.engine, "compose", "version"], capture=True)
        if not compose.ok:
            raise SetupError(
                STEP_CHECK_ENGINE,
                "docker compose is not available. Install the Docker Compose plugin.",
                compose.returncode,
            )
        return version.stdout.strip()

    def ensure_compose_file(self) -> bool:
        """Render the compose file from the profile if it does not exist yet.

        Returns True when a file was written.
        """
        path = Path(self.compose_file)
        if path.exists():
            return False
        try:
            document = dump_compose(render_compose(self.profile))
        except ValueError as e:
            raise SetupError(STEP_COMPOSE_FILE, f"invalid deployment profile: {e}") from e
        try:
            path.write_text(document, encoding="utf-8")
        except OSError as e:
            raise SetupError(STEP_COMPOSE_FILE, f"cannot write {path}: {e}") from e
        logger.info("Wrote compose file %s", path)
        return True

    def build_images(self) -> None:
        self._run_step(STEP_BUILD, self._compose("build"))

    def start_database(self) -> None:
        self._run_step(STEP_START_DB, self._compose("up", "-d", "db"))

    def wait_for_database(self) -> bool:
        """Poll pg_isready in the db container; return True once ready.

        Returns False (and continues setup) if attempts run out.
        """
        probe = self._compose(
            "exec",
            "-T",
            "db",
            "pg_isready",
            "-U",
            self.profile.db_user,
            "-d",
            self.profile.db_name,
        )
        for attempt in range(1, self.wait_attempts + 1):
            if self.runner(probe, capture=True).ok:
                logger.info("Database ready after %s attempt(s)", attempt)
                return True
            if attempt < self.wait_attempts:
                self.sleep(self.wait_interval_seconds)
        logger.warning(
            "Database not ready after %s attempts; starting remaining services anyway",
            self.wait_attempts,
        )
        return False

    def start_all(self) -> None:
        self._run_step(STEP_START_ALL, self._compose("up", "-d"))

    def print_summary(self) -> None:
        self.echo("")
        self.echo("Thesis Support System is starting.")
        self.echo("")
        self.echo("Access URLs:")
        for label, url in self.profile.access_urls().items():
            self.echo(f"  {label:<12} {url}")
        self.echo("")
        self.echo("Sample credentials:")
        for label, value in self.profile.sample_credentials().items():
            self.echo(f"  {label:<18} {value}")
        self.echo("")
        self.echo(f"Stop with: {self.engine} compose -f {self.compose_file} down")

    def run(self, skip_build: bool = False) -> list[str]:
        """Run the full sequence; return the names of the steps that ran.

        Raises:
            SetupError: A step failed (engine missing, compose file not writable,
                build or start failure).
        """
        steps: list[str] = []
        version = self.check_engine()
        self.echo(f"Using {version or self.engine}")
        steps.append(STEP_CHECK_ENGINE)
        if self.ensure_compose_file():
            self.echo(f"Wrote {self.compose_file}")
            steps.append(STEP_COMPOSE_FILE)
        if not skip_build:
            self.echo("Building images...")
            self.build_images()
            steps.append(STEP_BUILD)
        self.echo("Starting database...")
        self.start_database()
        steps.append(STEP_START_DB)
        self.echo("Waiting for database...")
        self.wait_for_database()
        steps.append(STEP_WAIT_DB)
        self.echo("Starting all services...")
        self.start_all()
        steps.append(STEP_START_ALL)
        self.print_summary()
        return steps
