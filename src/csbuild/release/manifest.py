from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

from csbuild.engine.errors import InvalidConfig

MANIFEST_NAME = "package.json"

# semver 2.0.0, prerelease and build metadata included
_SEMVER = re.compile(
    r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-((?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*)(?:\.(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*))*))?"
    r"(?:\+([0-9a-zA-Z-]+(?:\.[0-9a-zA-Z-]+)*))?$"
)


def is_semver(value: str) -> bool:
    return bool(_SEMVER.match(value))


def load_manifest(repo: Path) -> dict[str, Any]:
    path = repo / MANIFEST_NAME
    if not path.is_file():
        raise InvalidConfig(f"{path} not found")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise InvalidConfig(f"{path} is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise InvalidConfig(f"{path} must contain a JSON object")
    return data


def read_version(repo: Path) -> str:
    manifest = load_manifest(repo)
    version = manifest.get("version")
    if not isinstance(version, str) or not version:
        raise InvalidConfig(f"{repo / MANIFEST_NAME} has no version field")
    if not is_semver(version):
        raise InvalidConfig(f"{repo / MANIFEST_NAME} version {version!r} is not a semantic version")
    return version


def read_protected_branches(repo: Path) -> list[str] | None:
    """Return ``csBuild.protectedBranches`` from the manifest, or None when unset.

    A missing manifest is not an error here; the caller falls back to the
    configured defaults.
    """
    if not (repo / MANIFEST_NAME).is_file():
        return None
    section = load_manifest(repo).get("csBuild")
    if section is None:
        return None
    if not isinstance(section, dict):
        raise InvalidConfig(f"{repo / MANIFEST_NAME}: csBuild must be an object")
    branches = section.get("protectedBranches")
    if branches is None:
        return None
    if not isinstance(branches, list) or not all(isinstance(b, str) for b in branches):
        raise InvalidConfig(
            f"{repo / MANIFEST_NAME}: csBuild.protectedBranches must be a list of branch names"
        )
    return branches
