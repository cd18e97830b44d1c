"""Version validation and update-branch naming.

The source version is written verbatim into dependents and into branch
names, so it is checked to be a proper semver string up front. Dependents'
recorded versions are compared as plain strings and never parsed.
"""

from __future__ import annotations

import time

import semver


def parse_version(version_str: str) -> semver.Version:
    """Parse a version string into a semver.Version object.

    Unlike a dependent's recorded version (which may be a range), the
    source package version must be a full `major.minor.patch` version,
    optionally with prerelease/build metadata.

    Raises:
        ValueError: If the string is not valid semver.
    """
    return semver.Version.parse(version_str.strip())


def generate_branch_name(prefix: str, version: str, now_ms: int | None = None) -> str:
    """Build the name of an update branch.

    Format is `{prefix}-{version}-{epoch_millis}`. Collisions are not
    checked; the host rejects a branch that already exists.

    Examples:
        generate_branch_name("autoupdate", "2.0.0", 1700000000000)
            → "autoupdate-2.0.0-1700000000000"
    """
    if now_ms is None:
        now_ms = time.time_ns() // 1_000_000
    return f"{prefix}-{version}-{now_ms}"
