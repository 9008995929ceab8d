from __future__ import annotations

import logging
import shlex
from pathlib import Path

from csbuild.release.manifest import read_version
from csbuild.shell.executor import CommandRunner, run_command
from csbuild.workspace import git_ops

logger = logging.getLogger(__name__)

DEPENDENT_VERSION_MESSAGE = "Bump client to {version}"


def current_version(path: Path) -> str:
    return read_version(path)


def run_tests(path: Path, *, package_manager: str = "npm", runner: CommandRunner = run_command) -> None:
    runner(f"{package_manager} test", cwd=path)


def build(
    path: Path,
    stage: str,
    *,
    package_manager: str = "npm",
    runner: CommandRunner = run_command,
) -> None:
    """Run the ``build-<stage>`` script with output shown live."""
    runner(shlex.join([package_manager, "run", f"build-{stage}"]), cwd=path, silent=False)


def bump_version(
    path: Path,
    branch: str,
    *,
    remote: str = "origin",
    package_manager: str = "npm",
    runner: CommandRunner = run_command,
) -> None:
    """Bump the prerelease number and push the version commit and tag.

    The two steps are independent: if the push fails the local version
    commit and tag stay in place.
    """
    runner(f"{package_manager} version prerelease", cwd=path)
    logger.info("Bumped version in %s to %s", path, current_version(path))
    git_ops.push(remote, branch, follow_tags=True, cwd=path, runner=runner)


def commit_dependent_version(
    path: Path,
    branch: str,
    version: str,
    *,
    runner: CommandRunner = run_command,
) -> str:
    """Stage everything and commit an acknowledgement of ``version``.

    Pushing is left to the caller. Returns the commit message.
    """
    message = DEPENDENT_VERSION_MESSAGE.format(version=version)
    git_ops.add_all(cwd=path, runner=runner)
    git_ops.commit(message, allow_empty=True, cwd=path, runner=runner)
    logger.info("Committed %r on %s in %s", message, branch, path)
    return message
