from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Protocol

from csbuild.engine.errors import ShellCommandFail
from csbuild.models.state import ExecutionResult

logger = logging.getLogger(__name__)


class CommandRunner(Protocol):
    def __call__(self, command: str, *, cwd: Path, silent: bool = True) -> ExecutionResult: ...


def execute(command: str, *, cwd: Path, silent: bool = True) -> ExecutionResult:
    """Run ``command`` through the shell in ``cwd`` and wait for it to exit.

    The command line is passed through as-is; callers quote their own
    arguments. With ``silent=False`` the child inherits the terminal so
    output is shown live, and the returned stdout/stderr are empty.
    """
    logger.debug("exec (cwd=%s): %s", cwd, command)
    result = subprocess.run(
        command,
        shell=True,  # noqa: S602
        cwd=cwd,
        capture_output=silent,
        text=True,
    )
    execution = ExecutionResult(
        command=command,
        exit_code=result.returncode,
        stdout=result.stdout or "",
        stderr=result.stderr or "",
    )
    logger.debug("exit %d: %s", execution.exit_code, command)
    return execution


def run_command(command: str, *, cwd: Path, silent: bool = True) -> ExecutionResult:
    """Like :func:`execute` but raises :class:`ShellCommandFail` on non-zero exit."""
    result = execute(command, cwd=cwd, silent=silent)
    if not result.ok:
        raise ShellCommandFail(command, result)
    return result
