from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class GateState(str, Enum):
    PENDING = "PENDING"
    CONFIG_VALIDATED = "CONFIG_VALIDATED"
    FETCHED = "FETCHED"
    BRANCH_GATED = "BRANCH_GATED"
    DRIFT_GATED = "DRIFT_GATED"
    TESTED = "TESTED"
    BUILT = "BUILT"
    RELEASED = "RELEASED"


@dataclass(frozen=True)
class ExecutionResult:
    command: str
    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


@dataclass(frozen=True)
class RepositoryState:
    """Point-in-time snapshot of one checkout, consumed once by the pipeline."""

    path: Path
    is_clean: bool
    current_branch: str
    behind_count: int
    ahead_count: int
