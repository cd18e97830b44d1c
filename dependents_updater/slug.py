"""Git source locator parsing.

Turns the locators found in the `dependents` configuration into the
owner/repo pair the GitHub API addresses repositories by.
"""

from __future__ import annotations

import re
from urllib.parse import urlsplit


class ParseError(ValueError):
    pass


_NAME = r"[A-Za-z0-9_.-]+"
# owner/repo, optionally with the npm-style "github:" prefix
_SHORTHAND_RE = re.compile(rf"^(?:github:)?({_NAME})/({_NAME})$")
# scp-like ssh syntax: git@github.com:owner/repo.git
_SCP_RE = re.compile(rf"^[\w.-]+@[\w.-]+:({_NAME})/({_NAME})/?$")
_SCHEMES = {"http", "https", "git", "ssh", "git+https", "git+ssh", "git+http"}


def _strip_repo_suffix(repo: str) -> str:
    return repo[: -len(".git")] if repo.endswith(".git") else repo


def resolve_target_identity(locator: str) -> tuple[str, str]:
    """Parse an owner/repo pair out of a git URL or `owner/repo` shorthand.

    Examples:
        "acme/app" → ("acme", "app")
        "github:acme/app" → ("acme", "app")
        "https://github.com/acme/app.git" → ("acme", "app")
        "git@github.com:acme/app.git" → ("acme", "app")
        "git+https://github.com/acme/app.git#master" → ("acme", "app")

    Raises:
        ParseError: If the locator is not a recognizable repository reference.
    """
    text = (locator or "").strip()
    # A trailing #fragment names a commit-ish, not part of the repository
    text = text.split("#", 1)[0]
    if not text:
        raise ParseError(f"Empty git source locator: {locator!r}")

    match = _SHORTHAND_RE.match(text) or _SCP_RE.match(text)
    if match:
        owner, repo = match.group(1), _strip_repo_suffix(match.group(2))
    else:
        parts = urlsplit(text)
        if parts.scheme not in _SCHEMES or not parts.netloc:
            raise ParseError(f"Not a git repository reference: {locator!r}")
        segments = [s for s in parts.path.split("/") if s]
        if len(segments) < 2:
            raise ParseError(f"No owner/repo in git URL: {locator!r}")
        owner, repo = segments[0], _strip_repo_suffix(segments[1])

    if not owner or not repo or owner in {".", ".."} or repo in {".", ".."}:
        raise ParseError(f"Not a git repository reference: {locator!r}")
    return owner, repo
