"""Run configuration resolution.

The source package's name, version and the dependents-updater settings are
read from the package's own manifest: a `semantic-dependents-updates`
object in package.json, or a `[tool.semantic-dependents-updates]` table in
pyproject.toml. The GitHub token comes from the environment. Defaults from
`models` are overlaid field by field with whatever the user configured.
"""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import ValidationError
from tomlkit.exceptions import TOMLKitError

from .models import DEFAULT_API_URL, CommitAuthor, RunConfig
from .toml import (
    TOOL_TABLE,
    get_project_name,
    get_project_version,
    get_tool_config,
    load_pyproject,
)
from .versions import parse_version

CONFIG_KEY = TOOL_TABLE
TOKEN_ENV_KEYS = ("GH_TOKEN", "GITHUB_TOKEN")
API_URL_ENV_KEY = "GITHUB_API_URL"

# manifest key → RunConfig field
_OPTION_FIELDS = {
    "branch": "branch",
    "branchNameBase": "branch_name_base",
    "pullRequests": "pull_requests",
    "manifestPath": "manifest_path",
}


class ConfigError(RuntimeError):
    pass


def read_token(environ: Mapping[str, str]) -> str:
    """Return the first non-empty token among GH_TOKEN and GITHUB_TOKEN.

    Raises:
        ConfigError: If neither variable is set.
    """
    for key in TOKEN_ENV_KEYS:
        token = environ.get(key, "").strip()
        if token:
            return token
    raise ConfigError(f"You need to set the {TOKEN_ENV_KEYS[0]} env variable")


def resolve_author(overrides: Any) -> CommitAuthor:
    """Overlay user-supplied author fields on the default bot identity."""
    if overrides is None:
        return CommitAuthor()
    if not isinstance(overrides, Mapping):
        raise ConfigError("`author` must be an object with `name` and/or `email`.")
    unknown = set(overrides) - set(CommitAuthor.model_fields)
    if unknown:
        raise ConfigError(f"Unknown `author` fields: {', '.join(sorted(unknown))}")
    defaults = CommitAuthor()
    try:
        return CommitAuthor(**{**defaults.model_dump(), **overrides})
    except ValidationError as exc:
        raise ConfigError(f"Invalid `author`: {exc}") from exc


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Could not read {path}: {exc}") from exc


def _read_package_json(path: Path) -> tuple[str, str, Any]:
    try:
        pkg = json.loads(_read_text(path))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"{path} is not valid JSON: {exc}") from exc
    if not isinstance(pkg, dict):
        raise ConfigError(f"{path} must contain a JSON object.")
    return str(pkg.get("name") or ""), str(pkg.get("version") or ""), pkg.get(CONFIG_KEY)


def _read_pyproject(path: Path) -> tuple[str, str, Any]:
    try:
        doc = load_pyproject(path)
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Could not read {path}: {exc}") from exc
    except TOMLKitError as exc:
        raise ConfigError(f"{path} is not valid TOML: {exc}") from exc
    return get_project_name(doc, ""), get_project_version(doc), get_tool_config(doc)


def read_manifest_config(path: Path) -> tuple[str, str, dict[str, Any]]:
    """Read (package name, package version, settings) from a local manifest.

    Raises:
        ConfigError: If the file is missing, unreadable or malformed, or
            lacks the package name, version or settings object.
    """
    if not path.exists():
        raise ConfigError(f"No manifest found at {path}")
    if path.suffix == ".toml":
        name, version, section = _read_pyproject(path)
        where = f"[tool.{CONFIG_KEY}] in {path}"
    else:
        name, version, section = _read_package_json(path)
        where = f'"{CONFIG_KEY}" in {path}'

    if not name:
        raise ConfigError(f"{path} does not define a package name")
    if section is None:
        raise ConfigError(f"Missing {where}")
    if not isinstance(section, dict):
        raise ConfigError(f"{where} must be an object/table")
    if not version:
        raise ConfigError(f"{path} does not define a package version")
    return name, version, section


def build_run_config(
    name: str,
    version: str,
    section: Mapping[str, Any],
    environ: Mapping[str, str],
) -> RunConfig:
    """Merge the manifest settings and environment into a RunConfig."""
    try:
        parse_version(version)
    except ValueError as exc:
        raise ConfigError(f"Package version {version!r} is not valid semver") from exc

    dependents = section.get("dependents") or {}
    if not isinstance(dependents, Mapping):
        raise ConfigError("`dependents` must map dependent names to git URLs.")

    options: dict[str, Any] = {
        field: section[key] for key, field in _OPTION_FIELDS.items() if section.get(key) is not None
    }
    try:
        return RunConfig(
            package_name=name,
            package_version=version,
            dependents=dict(dependents),
            author=resolve_author(section.get("author")),
            token=read_token(environ),
            api_url=environ.get(API_URL_ENV_KEY) or DEFAULT_API_URL,
            **options,
        )
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc


def load_run_config(
    path: Path | str = Path("package.json"),
    environ: Mapping[str, str] | None = None,
) -> RunConfig:
    """Resolve the full RunConfig for this process.

    Args:
        path: Local manifest holding the source package and settings.
        environ: Environment to read the token from (defaults to os.environ).

    Raises:
        ConfigError: On any missing or malformed setting, or a missing token.
    """
    env = os.environ if environ is None else environ
    name, version, section = read_manifest_config(Path(path))
    return build_run_config(name, version, section, env)
