from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path

from csbuild.config.settings import PipelineSettings, ProjectConfig
from csbuild.engine.errors import (
    CommitsBehind,
    CsBuildError,
    InvalidConfig,
    InvalidRepositoryBranch,
    InvalidRepositoryState,
)
from csbuild.models.state import GateState, RepositoryState
from csbuild.release import versioning
from csbuild.release.manifest import read_protected_branches
from csbuild.shell.executor import CommandRunner, run_command
from csbuild.ui.progress import ProgressReporter
from csbuild.workspace import git_ops

logger = logging.getLogger(__name__)

ROLES = ("client", "server")


@dataclass
class PipelineResult:
    project: str
    stage: str
    state: GateState = GateState.PENDING
    reached: list[GateState] = field(default_factory=list)
    branches: dict[str, str] = field(default_factory=dict)
    repositories: dict[str, RepositoryState] = field(default_factory=dict)
    client_version: str | None = None


class ReleasePipeline:
    """Drives a client/server pair through the release gates.

    Gates run strictly in order (config, fetch, branch, drift, tests, build,
    release) and the first failure aborts the run by propagating its error.
    Nothing already done is undone: a failed push after a version bump
    leaves the bump in place.
    """

    def __init__(
        self,
        project_name: str,
        project: ProjectConfig,
        settings: PipelineSettings,
        reporter: ProgressReporter,
        runner: CommandRunner = run_command,
    ) -> None:
        self._project_name = project_name
        self._project = project
        self._settings = settings
        self._reporter = reporter
        self._runner = runner
        self._paths: dict[str, Path] = {}
        # cleanliness read by the branch gate, reused for the drift snapshot
        self._clean: dict[str, bool] = {}
        self.result = PipelineResult(project=project_name, stage=settings.stage)

    @property
    def state(self) -> GateState:
        return self.result.state

    def run(self) -> PipelineResult:
        logger.info("Release pipeline for %s (stage %s)", self._project_name, self._settings.stage)
        self.validate_config()
        self.fetch()
        self.gate_branches()
        self.gate_drift()
        self.run_tests()
        self.build()
        if self._settings.release:
            self.release()
        return self.result

    # -- gates -------------------------------------------------------------

    def validate_config(self) -> None:
        with self._gate("validating repositories"):
            for role in ("server", "client"):
                raw = getattr(self._project, role)
                path = Path(raw) if raw else None
                if path is None or not path.exists():
                    raise InvalidConfig(
                        f"Repository for {role} not found ({raw or 'unset'}). "
                        f"Use cs-build config {self._project_name} --{role} /path/to/repository/"
                    )
                if not git_ops.is_repo_root(path):
                    raise InvalidConfig(
                        f"{path} is not the root of a git repository. "
                        f"Use cs-build config {self._project_name} --{role} /path/to/repository/"
                    )
            if self._project.client.lower() == self._project.server.lower():
                raise InvalidConfig("Repository folders for client and server have to be different")
            self._paths = {role: Path(getattr(self._project, role)) for role in ROLES}
            self._reporter.report_success("client and server repositories found")
        self._advance(GateState.CONFIG_VALIDATED)

    def fetch(self) -> None:
        for role in ROLES:
            path = self._paths[role]
            with self._gate(f'fetching "{path}"'):
                git_ops.fetch_all(cwd=path, runner=self._runner)
                if self._settings.pull:
                    git_ops.pull(
                        self._settings.remote,
                        self._settings.stage,
                        cwd=path,
                        runner=self._runner,
                    )
                self._reporter.report_success(f'"{path}" fetched')
        self._advance(GateState.FETCHED)

    def gate_branches(self) -> None:
        for role in ROLES:
            path = self._paths[role]
            with self._gate(f'"{path}" on a protected branch?'):
                clean = git_ops.is_clean(cwd=path)
                if not clean:
                    raise InvalidRepositoryState(f'"{path}" repository is not clean')
                branch = git_ops.current_branch(cwd=path)
                protected = self.protected_branches(path)
                if branch in protected:
                    raise InvalidRepositoryBranch(f'"{branch}" in "{path}" is a protected branch')
                self.result.branches[role] = branch
                self._clean[role] = clean
                self._reporter.report_success(f'"{path}" branch {branch}')
        self._advance(GateState.BRANCH_GATED)

    def gate_drift(self) -> None:
        reference = self._settings.drift_reference
        for role in ROLES:
            path = self._paths[role]
            with self._gate(f'"{path}" behind {reference}?'):
                behind, ahead = git_ops.behind_ahead(reference, cwd=path)
                if behind > 0:
                    raise CommitsBehind(str(path), reference, behind, ahead)
                self.result.repositories[role] = RepositoryState(
                    path=path,
                    is_clean=self._clean[role],
                    current_branch=self.result.branches[role],
                    behind_count=behind,
                    ahead_count=ahead,
                )
                self._reporter.report_success(f'"{path}" commits not behind {reference}')
        self._advance(GateState.DRIFT_GATED)

    def run_tests(self) -> None:
        for role in ROLES:
            path = self._paths[role]
            with self._gate(f'testing "{path}"'):
                versioning.run_tests(path, package_manager=self._settings.package_manager, runner=self._runner)
                self._reporter.report_success(f'"{path}" tests passed')
        self._advance(GateState.TESTED)

    def build(self) -> None:
        client = self._paths["client"]
        stage = self._settings.stage
        self._reporter.report_info("ready to build")
        self._reporter.stop()
        with self._gate(f"build-{stage}"):
            versioning.build(client, stage, package_manager=self._settings.package_manager, runner=self._runner)
            self._reporter.report_success(f'"{client}" built for {stage}')
        self._advance(GateState.BUILT)

    def release(self) -> None:
        client, server = self._paths["client"], self._paths["server"]
        branches = self.result.branches
        remote = self._settings.remote
        pm = self._settings.package_manager

        with self._gate(f'releasing "{client}"'):
            versioning.bump_version(client, branches["client"], remote=remote, package_manager=pm, runner=self._runner)
            version = versioning.current_version(client)
            self.result.client_version = version
            self._reporter.report_success(f'"{client}" released {version}')

        with self._gate(f'releasing "{server}"'):
            versioning.commit_dependent_version(server, branches["server"], version, runner=self._runner)
            versioning.bump_version(server, branches["server"], remote=remote, package_manager=pm, runner=self._runner)
            self._reporter.report_success(
                f'"{server}" released {versioning.current_version(server)} with client {version}'
            )
        self._advance(GateState.RELEASED)

    # -- helpers -----------------------------------------------------------

    def protected_branches(self, path: Path) -> list[str]:
        """Manifest override first, then the resolved project/default list."""
        override = read_protected_branches(path)
        if override is not None:
            return override
        return list(self._settings.protected_branches)

    def _advance(self, state: GateState) -> None:
        logger.info("%s: %s", self._project_name, state.value)
        self.result.state = state
        self.result.reached.append(state)

    @contextmanager
    def _gate(self, message: str) -> Iterator[None]:
        self._reporter.report_start(message)
        try:
            yield
        except CsBuildError as e:
            logger.debug("gate failed after %s: %s", self.result.state.value, e)
            self._reporter.report_failure(str(e))
            raise
