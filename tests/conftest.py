"""Shared test fixtures."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from dependents_updater.models import RunConfig

DEPENDENT_MANIFEST = """\
{
  "name": "app",
  "version": "0.3.1",
  "dependencies": {
    "lib": "1.0.0",
    "left-pad": "^1.3.0"
  },
  "devDependencies": {
    "mocha": "^10.0.0"
  }
}
"""


@pytest.fixture
def run_config() -> RunConfig:
    """A RunConfig propagating lib@2.0.0 to a single dependent."""
    return RunConfig(
        package_name="lib",
        package_version="2.0.0",
        dependents={"app": "https://github.com/acme/app.git"},
        token="t0ken",
    )


@pytest.fixture
def host() -> MagicMock:
    """An in-memory repository host whose calls all succeed."""
    mock = MagicMock()
    mock.get_file_sha = AsyncMock(return_value="blob-sha")
    mock.get_file_content = AsyncMock(return_value=DEPENDENT_MANIFEST)
    mock.get_branch_head = AsyncMock(return_value="head-sha")
    mock.create_ref = AsyncMock(return_value={"ref": "refs/heads/x"})
    mock.update_file = AsyncMock(return_value="commit-sha")
    mock.create_pull_request = AsyncMock(
        return_value={"html_url": "https://github.com/acme/app/pull/7"}
    )
    return mock


@pytest.fixture
def package_json(tmp_path: Path) -> Path:
    """Create a temporary package.json with dependents-updater settings."""
    pkg = {
        "name": "lib",
        "version": "2.0.0",
        "semantic-dependents-updates": {
            "dependents": {
                "app": "https://github.com/acme/app.git",
                "tool": "acme/tool",
            },
            "branch": "main",
        },
    }
    path = tmp_path / "package.json"
    path.write_text(json.dumps(pkg, indent=2))
    return path


@pytest.fixture
def tmp_pyproject(tmp_path: Path) -> Path:
    """Create a temporary pyproject.toml with dependents-updater settings."""
    content = """\
[project]
name = "lib"
version = "2.0.0"

[tool.semantic-dependents-updates]
branchNameBase = "bump"
pullRequests = false

[tool.semantic-dependents-updates.author]
name = "Release Bot"

[tool.semantic-dependents-updates.dependents]
app = "acme/app"
"""
    pyproject = tmp_path / "pyproject.toml"
    pyproject.write_text(content)
    return pyproject


@pytest.fixture
def dependent_manifest() -> str:
    """A dependent's package.json depending on lib@1.0.0."""
    return DEPENDENT_MANIFEST
