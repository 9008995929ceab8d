from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import yaml
from typer.testing import CliRunner

from csbuild.cli.main import app
from csbuild.engine.errors import CommitsBehind
from csbuild.engine.pipeline import PipelineResult
from csbuild.models.state import GateState

runner = CliRunner()


@pytest.fixture()
def store(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    path = tmp_path / "store.yaml"
    monkeypatch.setenv("CSBUILD_CONFIG", str(path))
    return path


class TestConfigCommand:
    def test_writes_settings(self, store: Path, tmp_path: Path) -> None:
        result = runner.invoke(app, ["config", "demo", "--client", "/a", "--server", "/b"])
        assert result.exit_code == 0
        assert "demo settings written." in result.output
        data = yaml.safe_load(store.read_text())
        assert data["projects"]["demo"] == {"client": "/a", "server": "/b"}

    def test_updates_one_side(self, store: Path) -> None:
        runner.invoke(app, ["config", "demo", "--client", "/a", "--server", "/b"])
        result = runner.invoke(app, ["config", "demo", "--server", "/c"])
        assert result.exit_code == 0
        data = yaml.safe_load(store.read_text())
        assert data["projects"]["demo"] == {"client": "/a", "server": "/c"}

    def test_protected_and_drift_reference(self, store: Path) -> None:
        result = runner.invoke(
            app,
            ["config", "demo", "--protected", "main", "--protected", "release", "--drift-reference", "main"],
        )
        assert result.exit_code == 0
        data = yaml.safe_load(store.read_text())
        assert data["projects"]["demo"]["protected_branches"] == ["main", "release"]
        assert data["projects"]["demo"]["drift_reference"] == "main"

    def test_identical_paths_rejected(self, store: Path, tmp_path: Path) -> None:
        same = tmp_path / "a"
        same.mkdir()
        result = runner.invoke(app, ["config", "demo", "--client", str(same), "--server", str(same)])
        assert result.exit_code == 1
        assert "INVALID_CONFIG" in result.output
        assert not store.exists()

    def test_identical_paths_ignoring_case(self, store: Path) -> None:
        runner.invoke(app, ["config", "demo", "--client", "/Work/App"])
        result = runner.invoke(app, ["config", "demo", "--server", "/work/app"])
        assert result.exit_code == 1
        assert "INVALID_CONFIG" in result.output

    def test_requires_an_option(self, store: Path) -> None:
        result = runner.invoke(app, ["config", "demo"])
        assert result.exit_code == 1
        assert "INVALID_ARGUMENTS" in result.output

    def test_prints_full_configuration(self, store: Path) -> None:
        runner.invoke(app, ["config", "demo", "--client", "/a", "--server", "/b"])
        result = runner.invoke(app, ["config"])
        assert result.exit_code == 0
        printed = yaml.safe_load(result.output)
        assert printed["projects"]["demo"]["client"] == "/a"
        assert printed["defaults"]["protected_branches"] == ["production", "development"]

    def test_no_protected_stores_empty_list(self, store: Path) -> None:
        runner.invoke(app, ["config", "demo", "--protected", "main"])
        result = runner.invoke(app, ["config", "demo", "--no-protected"])
        assert result.exit_code == 0
        data = yaml.safe_load(store.read_text())
        assert data["projects"]["demo"]["protected_branches"] == []

    def test_default_protected_drops_project_list(self, store: Path) -> None:
        runner.invoke(app, ["config", "demo", "--client", "/a", "--protected", "main"])
        result = runner.invoke(app, ["config", "demo", "--default-protected"])
        assert result.exit_code == 0
        data = yaml.safe_load(store.read_text())
        assert "protected_branches" not in data["projects"]["demo"]
        assert data["projects"]["demo"]["client"] == "/a"

    def test_protected_options_are_exclusive(self, store: Path) -> None:
        result = runner.invoke(app, ["config", "demo", "--protected", "main", "--no-protected"])
        assert result.exit_code == 1
        assert "INVALID_ARGUMENTS" in result.output
        assert not store.exists()

    def test_malformed_store(self, store: Path) -> None:
        store.write_text("projects:\n  - demo\n")
        result = runner.invoke(app, ["config"])
        assert result.exit_code == 1
        assert "INVALID_CONFIG" in result.output


class TestMakeCommand:
    def _configure(self) -> None:
        runner.invoke(app, ["config", "demo", "--client", "/a", "--server", "/b"])

    def test_project_required(self, store: Path) -> None:
        result = runner.invoke(app, ["make"])
        assert result.exit_code == 1
        assert "INVALID_ARGUMENTS" in result.output
        assert "PROJECT-NAME" in result.output

    def test_stage_required(self, store: Path) -> None:
        self._configure()
        result = runner.invoke(app, ["make", "demo"])
        assert result.exit_code == 1
        assert "INVALID_ARGUMENTS" in result.output

    def test_unknown_project(self, store: Path) -> None:
        result = runner.invoke(app, ["make", "ghost", "development"])
        assert result.exit_code == 1
        assert "INVALID_CONFIG" in result.output

    def test_malformed_store(self, store: Path) -> None:
        store.write_text("projects:\n  - demo\n")
        result = runner.invoke(app, ["make", "demo", "development"])
        assert result.exit_code == 1
        assert "INVALID_CONFIG" in result.output

    def test_missing_repositories(self, store: Path) -> None:
        self._configure()
        result = runner.invoke(app, ["make", "demo", "development"])
        assert result.exit_code == 1
        assert "INVALID_CONFIG" in result.output
        assert "cs-build config demo --server" in result.output

    def test_runs_pipeline(self, store: Path) -> None:
        self._configure()
        pipeline = MagicMock()
        pipeline.run.return_value = PipelineResult(project="demo", stage="nightly", state=GateState.BUILT)

        with patch("csbuild.cli.make.ReleasePipeline", return_value=pipeline) as factory:
            result = runner.invoke(app, ["make", "--project", "demo", "--stage", "nightly", "--release"])

        assert result.exit_code == 0
        assert "demo nightly: BUILT" in result.output
        settings = factory.call_args.args[2]
        assert settings.stage == "nightly"
        assert settings.drift_reference == "nightly"
        assert settings.release

    def test_gate_failure_renders_kind(self, store: Path) -> None:
        self._configure()
        pipeline = MagicMock()
        pipeline.run.side_effect = CommitsBehind("/a", "development", 3, 1)

        with patch("csbuild.cli.make.ReleasePipeline", return_value=pipeline):
            result = runner.invoke(app, ["make", "demo", "development"])

        assert result.exit_code == 1
        assert "COMMITS_BEHIND" in result.output
        assert "behind development by 3 and ahead by 1" in result.output


def test_no_command_is_invalid(store: Path) -> None:
    result = runner.invoke(app, [])
    assert result.exit_code == 1
    assert "INVALID_COMMAND" in result.output
