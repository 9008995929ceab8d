from __future__ import annotations

import json
from pathlib import Path

import pytest

from csbuild.engine.errors import ShellCommandFail
from csbuild.models.state import ExecutionResult
from csbuild.workspace.git_ops import run_git


def init_repo(path: Path, *, version: str = "1.0.0-0", manifest_extra: dict | None = None) -> Path:
    """Create a git repo with a package.json commit and a `development` branch.

    The checkout is left on ``feature/x``, level with ``development``.
    """
    path.mkdir(parents=True, exist_ok=True)
    run_git("init", cwd=path)
    run_git("config", "user.email", "test@test.com", cwd=path)
    run_git("config", "user.name", "Test", cwd=path)
    run_git("config", "commit.gpgsign", "false", cwd=path)
    manifest = {"name": path.name, "version": version, **(manifest_extra or {})}
    (path / "package.json").write_text(json.dumps(manifest, indent=2) + "\n")
    run_git("add", "package.json", cwd=path)
    run_git("commit", "-m", "Initial commit", cwd=path)
    run_git("branch", "development", cwd=path)
    run_git("checkout", "-b", "feature/x", cwd=path)
    return path


def add_commit(repo: Path, name: str) -> None:
    (repo / name).write_text(f"{name}\n")
    run_git("add", name, cwd=repo)
    run_git("commit", "-m", f"Add {name}", cwd=repo)


class FakeRunner:
    """Stands in for the shell executor; records every command line."""

    def __init__(self, fail_on: str | None = None, exit_code: int = 1) -> None:
        self.calls: list[tuple[str, Path, bool]] = []
        self._fail_on = fail_on
        self._exit_code = exit_code

    def __call__(self, command: str, *, cwd: Path, silent: bool = True) -> ExecutionResult:
        self.calls.append((command, cwd, silent))
        if self._fail_on is not None and self._fail_on in command:
            result = ExecutionResult(command=command, exit_code=self._exit_code, stderr="boom")
            raise ShellCommandFail(command, result)
        return ExecutionResult(command=command, exit_code=0)

    @property
    def commands(self) -> list[str]:
        return [command for command, _, _ in self.calls]


@pytest.fixture()
def git_repo(tmp_path: Path) -> Path:
    return init_repo(tmp_path / "repo")


@pytest.fixture()
def repo_pair(tmp_path: Path) -> tuple[Path, Path]:
    return init_repo(tmp_path / "client"), init_repo(tmp_path / "server")


@pytest.fixture()
def fake_runner() -> FakeRunner:
    return FakeRunner()
