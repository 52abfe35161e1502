"""Command-line entry points for rendering compose and running setup."""

import pytest
import yaml

from scripts import render_compose, setup_environment
from thesis_support.deployment import SetupError


def test_render_compose_writes_yaml(tmp_path, capsys) -> None:
    output = tmp_path / "docker-compose.yml"
    assert render_compose.main(["--output", str(output)]) == 0
    text = output.read_text()
    assert text.startswith("name: ")
    doc = yaml.safe_load(text)
    assert doc["services"]["db"]["deploy"]["resources"]["limits"]["memory"] == "512M"
    assert "Wrote" in capsys.readouterr().out


def test_render_compose_default_output_is_yml() -> None:
    assert render_compose.parse_args([]).output == "docker-compose.yml"
    assert setup_environment.parse_args([]).compose_file == "docker-compose.yml"


def test_render_compose_custom_limits_to_stdout(capsys) -> None:
    argv = ["-o", "-", "--memory-limit", "1G", "--memory-reservation", "512M"]
    assert render_compose.main(argv) == 0
    doc = yaml.safe_load(capsys.readouterr().out)
    assert doc["services"]["backend"]["deploy"]["resources"]["limits"]["memory"] == "1G"


def test_render_compose_invalid_limits(capsys) -> None:
    assert render_compose.main(["-o", "-", "--memory-limit", "128M"]) == 1
    assert "Invalid resources" in capsys.readouterr().err


class _FakeSetup:
    instances: list["_FakeSetup"] = []
    error: SetupError | None = None

    def __init__(self, **kwargs) -> None:
        self.kwargs = kwargs
        self.skip_build = None
        _FakeSetup.instances.append(self)

    def run(self, skip_build: bool = False) -> list[str]:
        self.skip_build = skip_build
        if self.error is not None:
            raise self.error
        return []


@pytest.fixture
def fake_setup(monkeypatch: pytest.MonkeyPatch):
    _FakeSetup.instances = []
    _FakeSetup.error = None
    monkeypatch.setattr(setup_environment, "EnvironmentSetup", _FakeSetup)
    monkeypatch.setattr(setup_environment, "setup_logging", lambda level=None: None)
    return _FakeSetup


def test_setup_passes_options_through(tmp_path, fake_setup) -> None:
    compose = tmp_path / "docker-compose.yml"
    argv = ["--compose-file", str(compose), "--skip-build", "--wait-attempts", "5"]
    assert setup_environment.main(argv) == 0
    (instance,) = fake_setup.instances
    assert instance.skip_build is True
    assert instance.kwargs["compose_file"] == str(compose)
    assert instance.kwargs["wait_attempts"] == 5


def test_setup_leaves_compose_file_to_the_sequence(tmp_path, fake_setup) -> None:
    compose = tmp_path / "docker-compose.yml"
    fake_setup.error = SetupError("check_engine", "Docker is not installed")
    assert setup_environment.main(["--compose-file", str(compose)]) == 1
    assert not compose.exists()


def test_setup_failure_exits_1(tmp_path, fake_setup, capsys) -> None:
    fake_setup.error = SetupError("check_engine", "Docker is not installed")
    compose = tmp_path / "docker-compose.yml"
    assert setup_environment.main(["--compose-file", str(compose)]) == 1
    assert "Setup failed: [check_engine]" in capsys.readouterr().err
