"""EnvironmentSetup runs the setup steps in order through a command runner."""

from collections.abc import Sequence
from pathlib import Path

import pytest
import yaml

from thesis_support.deployment import CommandResult, EnvironmentSetup, SetupError
from thesis_support.deployment.bootstrap import (
    STEP_BUILD,
    STEP_CHECK_ENGINE,
    STEP_COMPOSE_FILE,
    STEP_START_ALL,
    STEP_START_DB,
    STEP_WAIT_DB,
    subprocess_runner,
)


class RecordingRunner:
    """Returns scripted results per command prefix and records every call."""

    def __init__(self, failures: dict[tuple[str, ...], int] | None = None) -> None:
        self.calls: list[list[str]] = []
        self.failures = failures or {}
        self.ready_after = 1
        self._probes = 0

    def __call__(self, args: Sequence[str], capture: bool = False) -> CommandResult:
        args = list(args)
        self.calls.append(args)
        if "pg_isready" in args:
            self._probes += 1
            return CommandResult(0 if self._probes >= self.ready_after else 1)
        for prefix, code in self.failures.items():
            if tuple(args[: len(prefix)]) == prefix or prefix[-1] in args:
                return CommandResult(code)
        return CommandResult(0, stdout="Docker version 27.0.0\n" if "--version" in args else "")


@pytest.fixture
def compose_path(tmp_path: Path) -> Path:
    """An existing compose file so the sequence does not render one."""
    path = tmp_path / "docker-compose.yml"
    path.write_text("services: {}\n", encoding="utf-8")
    return path


def _setup(
    runner: RecordingRunner, compose_path: Path, **kwargs
) -> tuple[EnvironmentSetup, list[str], list[float]]:
    output: list[str] = []
    sleeps: list[float] = []
    setup = EnvironmentSetup(
        runner=runner,
        compose_file=str(compose_path),
        echo=output.append,
        sleep=sleeps.append,
        **kwargs,
    )
    return setup, output, sleeps


def test_default_compose_file_is_yaml() -> None:
    assert EnvironmentSetup().compose_file == "docker-compose.yml"


def test_full_sequence_order(compose_path: Path) -> None:
    runner = RecordingRunner()
    setup, output, _ = _setup(runner, compose_path)

    steps = setup.run()

    assert steps == [STEP_CHECK_ENGINE, STEP_BUILD, STEP_START_DB, STEP_WAIT_DB, STEP_START_ALL]
    compose = ["docker", "compose", "-f", str(compose_path)]
    assert runner.calls[0] == ["docker", "--version"]
    assert runner.calls[1] == ["docker", "compose", "version"]
    assert runner.calls[2] == [*compose, "build"]
    assert runner.calls[3] == [*compose, "up", "-d", "db"]
    assert runner.calls[4][:7] == [*compose, "exec", "-T", "db"]
    assert runner.calls[-1] == [*compose, "up", "-d"]
    text = "\n".join(output)
    assert "http://localhost:3000" in text
    assert "thesis_dev_password" in text


def test_skip_build(compose_path: Path) -> None:
    runner = RecordingRunner()
    setup, _, _ = _setup(runner, compose_path)
    assert STEP_BUILD not in setup.run(skip_build=True)
    assert not any(call[-1] == "build" for call in runner.calls)


def test_missing_engine_aborts_before_anything_else(compose_path: Path) -> None:
    runner = RecordingRunner(failures={("docker", "--version"): 127})
    setup, _, _ = _setup(runner, compose_path)
    with pytest.raises(SetupError) as exc:
        setup.run()
    assert exc.value.step == STEP_CHECK_ENGINE
    assert "Docker is not installed" in str(exc.value)
    assert len(runner.calls) == 1


def test_missing_engine_writes_no_compose_file(tmp_path: Path) -> None:
    target = tmp_path / "docker-compose.yml"
    runner = RecordingRunner(failures={("docker", "--version"): 127})
    setup, _, _ = _setup(runner, target)
    with pytest.raises(SetupError):
        setup.run()
    assert not target.exists()


def test_missing_compose_file_rendered_after_engine_check(tmp_path: Path) -> None:
    target = tmp_path / "docker-compose.yml"
    runner = RecordingRunner()
    setup, output, _ = _setup(runner, target)

    steps = setup.run(skip_build=True)

    assert steps[:2] == [STEP_CHECK_ENGINE, STEP_COMPOSE_FILE]
    assert f"Wrote {target}" in output
    document = yaml.safe_load(target.read_text(encoding="utf-8"))
    assert set(document["services"]) == {"db", "redis", "backend", "frontend"}


def test_existing_compose_file_is_kept(compose_path: Path) -> None:
    runner = RecordingRunner()
    setup, _, _ = _setup(runner, compose_path)
    assert setup.ensure_compose_file() is False
    assert compose_path.read_text(encoding="utf-8") == "services: {}\n"


def test_unwritable_compose_file_names_the_step(tmp_path: Path) -> None:
    target = tmp_path / "missing-dir" / "docker-compose.yml"
    setup, _, _ = _setup(RecordingRunner(), target)
    with pytest.raises(SetupError) as exc:
        setup.run()
    assert exc.value.step == STEP_COMPOSE_FILE


def test_failing_build_names_the_step(compose_path: Path) -> None:
    runner = RecordingRunner(failures={("build",): 2})
    setup, _, _ = _setup(runner, compose_path)
    with pytest.raises(SetupError) as exc:
        setup.run()
    assert exc.value.step == STEP_BUILD
    assert exc.value.returncode == 2
    assert str(exc.value).startswith("[build_images]")


def test_wait_polls_until_ready(compose_path: Path) -> None:
    runner = RecordingRunner()
    runner.ready_after = 3
    setup, _, sleeps = _setup(runner, compose_path, wait_interval_seconds=0.5)
    assert setup.wait_for_database() is True
    assert sleeps == [0.5, 0.5]


def test_wait_gives_up_but_setup_continues(compose_path: Path) -> None:
    runner = RecordingRunner()
    runner.ready_after = 100
    setup, _, sleeps = _setup(runner, compose_path, wait_attempts=3)
    assert setup.wait_for_database() is False
    assert len(sleeps) == 2
    assert setup.run(skip_build=True)[-1] == STEP_START_ALL


def test_subprocess_runner_missing_executable() -> None:
    result = subprocess_runner(["definitely-not-a-real-binary-xyz"])
    assert result.returncode == 127
    assert not result.ok
