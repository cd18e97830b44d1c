"""Tests for dependents_updater.toml."""

from __future__ import annotations

from pathlib import Path

import tomlkit

from dependents_updater.toml import (
    get_project_name,
    get_project_version,
    get_tool_config,
    load_pyproject,
)


class TestLoadPyproject:
    def test_load(self, tmp_pyproject: Path) -> None:
        doc = load_pyproject(tmp_pyproject)
        assert get_project_name(doc, "") == "lib"
        assert get_project_version(doc) == "2.0.0"


class TestGetProjectName:
    def test_not_normalized(self) -> None:
        doc = tomlkit.parse('[project]\nname = "My_Package"')
        assert get_project_name(doc, "fallback") == "My_Package"

    def test_returns_fallback_when_no_project(self) -> None:
        doc = tomlkit.parse("")
        assert get_project_name(doc, "fallback") == "fallback"


class TestGetProjectVersion:
    def test_empty_when_missing(self) -> None:
        doc = tomlkit.parse("[project]")
        assert get_project_version(doc) == ""

    def test_empty_when_dynamic(self) -> None:
        doc = tomlkit.parse('[project]\nname = "lib"\ndynamic = ["version"]')
        assert get_project_version(doc) == ""


class TestGetToolConfig:
    def test_returns_plain_data(self, tmp_pyproject: Path) -> None:
        section = get_tool_config(load_pyproject(tmp_pyproject))
        assert section == {
            "branchNameBase": "bump",
            "pullRequests": False,
            "author": {"name": "Release Bot"},
            "dependents": {"app": "acme/app"},
        }
        assert type(section) is dict
        assert type(section["dependents"]) is dict

    def test_missing_table(self) -> None:
        doc = tomlkit.parse('[project]\nname = "lib"\n\n[tool.other]\nx = 1\n')
        assert get_tool_config(doc) is None

    def test_missing_tool(self) -> None:
        assert get_tool_config(tomlkit.parse("")) is None
