from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from csbuild.engine.errors import InvalidConfig

CONFIG_FILENAME = "cs-build.yaml"
HOME_CONFIG_FILENAME = ".cs-build.yaml"
CONFIG_ENV_VAR = "CSBUILD_CONFIG"

DEFAULT_PROTECTED_BRANCHES = ["production", "development"]


class DefaultsConfig(BaseModel):
    protected_branches: list[str] = Field(default_factory=lambda: list(DEFAULT_PROTECTED_BRANCHES))
    remote: str = "origin"
    package_manager: str = "npm"


class ProjectConfig(BaseModel):
    client: str = ""
    server: str = ""
    protected_branches: list[str] | None = None
    drift_reference: str | None = None


class CsBuildConfig(BaseModel):
    defaults: DefaultsConfig = DefaultsConfig()
    projects: dict[str, ProjectConfig] = Field(default_factory=dict)
    config_path: Path | None = Field(default=None, exclude=True)

    def project(self, name: str) -> ProjectConfig:
        project = self.projects.get(name)
        if project is None:
            raise InvalidConfig(
                f"Project '{name}' is not configured. "
                f"Use cs-build config {name} --client /path/to/client --server /path/to/server"
            )
        return project


class PipelineSettings(BaseModel):
    """Everything a pipeline run needs to know, resolved once up front."""

    stage: str
    protected_branches: list[str]
    drift_reference: str
    remote: str = "origin"
    package_manager: str = "npm"
    pull: bool = False
    release: bool = False


def resolve_settings(
    config: CsBuildConfig,
    project: ProjectConfig,
    stage: str,
    *,
    pull: bool = False,
    release: bool = False,
) -> PipelineSettings:
    protected = project.protected_branches
    if protected is None:
        protected = config.defaults.protected_branches
    return PipelineSettings(
        stage=stage,
        protected_branches=list(protected),
        drift_reference=project.drift_reference or stage,
        remote=config.defaults.remote,
        package_manager=config.defaults.package_manager,
        pull=pull,
        release=release,
    )


def _find_config_file(start: Path | None = None) -> Path | None:
    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent
    return None


def config_path(start: Path | None = None) -> Path:
    """Where the store lives: $CSBUILD_CONFIG, a cs-build.yaml up the tree, else ~/.cs-build.yaml."""
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()
    found = _find_config_file(start)
    if found is not None:
        return found
    return Path.home() / HOME_CONFIG_FILENAME


def load_config(path: Path | None = None, start: Path | None = None) -> CsBuildConfig:
    path = path or config_path(start)
    if path.is_file():
        with open(path, encoding="utf-8") as f:
            try:
                raw = yaml.safe_load(f) or {}
            except (yaml.YAMLError, UnicodeDecodeError) as e:
                raise InvalidConfig(f"{path} is not valid YAML: {e}") from e
        try:
            config = CsBuildConfig.model_validate(raw)
        except ValidationError as e:
            raise InvalidConfig(f"{path}: {e}") from e
    else:
        config = CsBuildConfig()
    config.config_path = path
    return config


def dump_config(config: CsBuildConfig) -> str:
    data = config.model_dump(mode="json", exclude_none=True)
    return yaml.safe_dump(data, sort_keys=False)


def save_config(config: CsBuildConfig, path: Path | None = None) -> Path:
    path = path or config.config_path or config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dump_config(config), encoding="utf-8")
    config.config_path = path
    return path
