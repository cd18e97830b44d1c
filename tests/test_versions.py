"""Tests for dependents_updater.versions."""

from __future__ import annotations

import re
from unittest.mock import patch

import pytest

from dependents_updater.versions import generate_branch_name, parse_version


class TestParseVersion:
    def test_full_semver(self) -> None:
        v = parse_version("1.2.3")
        assert v.major == 1
        assert v.minor == 2
        assert v.patch == 3

    def test_prerelease(self) -> None:
        v = parse_version("2.0.0-beta.1")
        assert v.prerelease == "beta.1"

    def test_strips_whitespace(self) -> None:
        assert str(parse_version(" 1.0.0\n")) == "1.0.0"

    @pytest.mark.parametrize("version", ["1.2", "1", "v1.2.3", "^1.2.3", ""])
    def test_rejects_incomplete_or_ranges(self, version: str) -> None:
        with pytest.raises(ValueError):
            parse_version(version)


class TestGenerateBranchName:
    def test_explicit_timestamp(self) -> None:
        assert (
            generate_branch_name("autoupdate", "2.0.0", 1700000000000)
            == "autoupdate-2.0.0-1700000000000"
        )

    @pytest.mark.parametrize(
        "prefix,version",
        [("autoupdate", "2.0.0"), ("bump", "1.0.0-rc.1"), ("deps/lib", "10.4.2")],
    )
    def test_matches_pattern(self, prefix: str, version: str) -> None:
        name = generate_branch_name(prefix, version)
        assert re.fullmatch(rf"{re.escape(prefix)}-{re.escape(version)}-\d+", name)

    @patch("dependents_updater.versions.time.time_ns", return_value=1_700_000_000_123_456_789)
    def test_uses_epoch_millis(self, _mock_time_ns) -> None:
        assert generate_branch_name("autoupdate", "2.0.0") == "autoupdate-2.0.0-1700000000123"
