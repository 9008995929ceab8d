from __future__ import annotations

import logging
import shlex
import subprocess
from pathlib import Path

from csbuild.engine.errors import DetachedHead, GitError
from csbuild.shell.executor import CommandRunner, run_command

logger = logging.getLogger(__name__)


def _git(*args: str, cwd: Path) -> subprocess.CompletedProcess[str]:
    return subprocess.run(
        ["git", *args],
        cwd=cwd,
        capture_output=True,
        text=True,
    )


def run_git(*args: str, cwd: Path) -> str:
    cmd = ["git", *args]
    result = _git(*args, cwd=cwd)
    if result.returncode != 0:
        raise GitError(cmd, result.returncode, result.stderr.strip())
    return result.stdout.strip()


# -- queries ---------------------------------------------------------------


def status(*, cwd: Path) -> str:
    return run_git("status", "--porcelain", cwd=cwd)


def is_clean(*, cwd: Path) -> bool:
    """True when there is nothing staged, modified or untracked."""
    return status(cwd=cwd) == ""


def current_branch(*, cwd: Path) -> str:
    args = ("symbolic-ref", "--short", "-q", "HEAD")
    result = _git(*args, cwd=cwd)
    # -q makes a non-symbolic HEAD exit 1 without output; real failures exit 128
    if result.returncode == 1 and not result.stderr.strip():
        raise DetachedHead(["git", *args], str(cwd))
    if result.returncode != 0:
        raise GitError(["git", *args], result.returncode, result.stderr.strip())
    return result.stdout.strip()


def parse_left_right_count(output: str, command: list[str] | None = None) -> tuple[int, int]:
    """Parse ``git rev-list --left-right --count`` output into (left, right)."""
    fields = output.split()
    if len(fields) != 2:
        raise GitError(command or ["git", "rev-list"], 0, f"unexpected count output: {output!r}")
    try:
        return int(fields[0]), int(fields[1])
    except ValueError:
        raise GitError(command or ["git", "rev-list"], 0, f"unexpected count output: {output!r}")


def behind_ahead(reference: str, *, cwd: Path) -> tuple[int, int]:
    """Commits only on ``reference`` (behind) and only on HEAD (ahead)."""
    args = ["rev-list", "--left-right", "--count", f"{reference}...HEAD"]
    output = run_git(*args, cwd=cwd)
    return parse_left_right_count(output, ["git", *args])


def is_git_repo(path: Path) -> bool:
    try:
        run_git("rev-parse", "--is-inside-work-tree", cwd=path)
        return True
    except (GitError, FileNotFoundError, NotADirectoryError):
        return False


def is_repo_root(path: Path) -> bool:
    if not is_git_repo(path):
        return False
    toplevel = Path(run_git("rev-parse", "--show-toplevel", cwd=path))
    return toplevel.resolve() == path.resolve()


# -- mutations (through the shell executor) ----------------------------------


def fetch_all(*, cwd: Path, runner: CommandRunner = run_command) -> None:
    runner("git fetch --all", cwd=cwd)


def pull(remote: str, branch: str, *, cwd: Path, runner: CommandRunner = run_command) -> None:
    runner(shlex.join(["git", "pull", remote, branch]), cwd=cwd)


def add_all(*, cwd: Path, runner: CommandRunner = run_command) -> None:
    runner("git add -A", cwd=cwd)


def commit(
    message: str,
    *,
    allow_empty: bool = False,
    cwd: Path,
    runner: CommandRunner = run_command,
) -> None:
    args = ["git", "commit", "-m", message]
    if allow_empty:
        args.append("--allow-empty")
    runner(shlex.join(args), cwd=cwd)


def push(
    remote: str,
    branch: str,
    *,
    follow_tags: bool = False,
    cwd: Path,
    runner: CommandRunner = run_command,
) -> None:
    args = ["git", "push", remote, branch]
    if follow_tags:
        args.append("--follow-tags")
    runner(shlex.join(args), cwd=cwd)
