"""TOML reading utilities.

Python projects can keep their dependents-updater configuration in
pyproject.toml instead of package.json. tomlkit is used so values come back
as plain containers regardless of how the table is written.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import tomlkit

TOOL_TABLE = "semantic-dependents-updates"


def load_pyproject(path: Path) -> tomlkit.TOMLDocument:
    """Load and parse a pyproject.toml file."""
    return tomlkit.parse(path.read_text(encoding="utf-8"))


def get_project_name(doc: tomlkit.TOMLDocument, fallback: str) -> str:
    """Extract [project].name as written.

    The name is not normalized: it has to match the key dependents use in
    their manifests verbatim.
    """
    return str(doc.get("project", {}).get("name", fallback))


def get_project_version(doc: tomlkit.TOMLDocument) -> str:
    """Extract [project].version, or "" when it is missing or dynamic."""
    return str(doc.get("project", {}).get("version", ""))


def get_tool_config(doc: tomlkit.TOMLDocument) -> Any:
    """Return the [tool.semantic-dependents-updates] table as plain data.

    Returns None when the table is absent. The value is not type-checked here.
    """
    table = doc.get("tool", {}).get(TOOL_TABLE)
    if table is None:
        return None
    return table.unwrap()
