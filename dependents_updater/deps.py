"""Dependency handling utilities.

Finds the source package among a dependent manifest's dependency buckets
and rewrites the recorded version without touching the rest of the file.
"""

from __future__ import annotations

import json
import re
from typing import Any

from .models import UpdateDecision

# Searched in this order; the first bucket naming the package wins.
DEPENDENCY_BUCKETS = ("dependencies", "devDependencies", "peerDependencies")


class ManifestError(ValueError):
    pass


def parse_manifest(raw_text: str) -> dict[str, Any]:
    """Parse manifest text into a mapping.

    Raises:
        ManifestError: If the text is not a JSON object.
    """
    try:
        doc = json.loads(raw_text)
    except json.JSONDecodeError as exc:
        raise ManifestError(f"Manifest is not valid JSON: {exc}") from exc
    if not isinstance(doc, dict):
        raise ManifestError("Manifest must be a JSON object at the top level.")
    return doc


def find_dependency(
    manifest: dict[str, Any], package_name: str
) -> tuple[str, str] | tuple[None, None]:
    """Locate a package in the manifest's dependency buckets.

    Returns:
        (bucket, recorded_version) for the first bucket in
        DEPENDENCY_BUCKETS containing the package, or (None, None).
    """
    for key in DEPENDENCY_BUCKETS:
        bucket = manifest.get(key)
        if isinstance(bucket, dict) and package_name in bucket:
            return key, str(bucket[package_name])
    return None, None


def replace_version(
    raw_text: str, package_name: str, current_version: str, new_version: str
) -> str:
    """Swap the recorded version of a package in raw manifest text.

    The canonical `"name": "version"` form is replaced first. When the
    manifest is formatted differently (e.g. `"name" : "version"`), the
    same key/value pair is matched with any whitespace around the colon
    and that spacing is kept. Only the first occurrence is replaced and
    every other byte is left as it was.

    Raises:
        ManifestError: If the key/value pair cannot be found in the text.
    """
    old = f'"{package_name}": "{current_version}"'
    if old in raw_text:
        return raw_text.replace(old, f'"{package_name}": "{new_version}"', 1)

    pattern = re.compile(
        rf'("{re.escape(package_name)}"\s*:\s*"){re.escape(current_version)}(")'
    )
    updated, count = pattern.subn(
        lambda m: f"{m.group(1)}{new_version}{m.group(2)}", raw_text, count=1
    )
    if not count:
        raise ManifestError(
            f'Could not find "{package_name}": "{current_version}" in the manifest text'
        )
    return updated


def decide_update(raw_text: str, source_name: str, source_version: str) -> UpdateDecision:
    """Decide whether a dependent needs the source package bumped.

    Versions are compared as exact strings; ranges such as "^1.0.0" are
    treated as a differing version and replaced by the exact new version.

    Args:
        raw_text: Raw text of the dependent's manifest.
        source_name: Name of the package being propagated.
        source_version: Version being propagated.

    Returns:
        An UpdateDecision. `key` is None when the dependent doesn't depend on
        the source package at all.
    """
    manifest = parse_manifest(raw_text)
    key, current_version = find_dependency(manifest, source_name)
    if key is None:
        return UpdateDecision(should_update=False)

    if current_version == source_version:
        return UpdateDecision(
            should_update=False, key=key, current_version=current_version
        )

    updated_text = replace_version(raw_text, source_name, current_version, source_version)
    return UpdateDecision(
        should_update=True,
        key=key,
        current_version=current_version,
        updated_text=updated_text,
    )
