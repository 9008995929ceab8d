from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from csbuild.models.state import ExecutionResult


class CsBuildError(Exception):
    """Base for every failure that aborts a cs-build invocation.

    ``kind`` is a stable identifier rendered next to the message so that
    operators (and scripts wrapping the tool) can tell failures apart.
    """

    kind: ClassVar[str] = "CS_BUILD_ERROR"


class InvalidArguments(CsBuildError):
    kind = "INVALID_ARGUMENTS"


class InvalidConfig(CsBuildError):
    kind = "INVALID_CONFIG"


class InvalidRepositoryState(CsBuildError):
    kind = "INVALID_REPOSITORY_STATE"


class InvalidRepositoryBranch(CsBuildError):
    kind = "INVALID_REPOSITORY_BRANCH"


class InvalidCommand(CsBuildError):
    kind = "INVALID_COMMAND"


class GitError(CsBuildError):
    kind = "GIT_ERROR"

    def __init__(self, command: list[str], returncode: int, stderr: str) -> None:
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"git command failed ({returncode}): {' '.join(command)}\n{stderr}")


class DetachedHead(GitError):
    def __init__(self, command: list[str], path: str) -> None:
        super().__init__(command, 1, f"HEAD is detached in {path}; check out a branch first")


class CommitsBehind(CsBuildError):
    kind = "COMMITS_BEHIND"

    def __init__(self, path: str, reference: str, behind: int, ahead: int) -> None:
        self.path = path
        self.reference = reference
        self.behind = behind
        self.ahead = ahead
        super().__init__(
            f'"{path}" is behind {reference} by {behind} and ahead by {ahead} commits'
        )


class ShellCommandFail(CsBuildError):
    kind = "SHELL_COMMAND_FAIL"

    def __init__(self, command: str, result: ExecutionResult | None = None) -> None:
        self.command = command
        self.result = result
        detail = ""
        if result is not None:
            detail = f" (exit {result.exit_code})"
            if result.stderr.strip():
                detail += f"\n{result.stderr.strip()}"
        super().__init__(f"{command}{detail}")
