"""GitHub REST API access.

This module is the only place that:
- Constructs GitHub REST endpoints
- Sends HTTP requests to the API
- Interprets GitHub API responses / error payloads

The pipeline talks to it through the narrow `RepositoryHost` protocol, so
tests can substitute an in-memory host.
"""

from __future__ import annotations

import base64
from typing import Any, Protocol
from urllib.parse import quote

import httpx

from .models import DEFAULT_API_URL, CommitAuthor

RAW_MEDIA_TYPE = "application/vnd.github.raw+json"
JSON_MEDIA_TYPE = "application/vnd.github+json"


class HostError(RuntimeError):
    """A failed call to the repository host.

    Attributes:
        status: HTTP status code, or None for transport failures.
    """

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class RemoteReadError(HostError):
    pass


class RemoteWriteError(HostError):
    pass


class RepositoryHost(Protocol):
    async def get_file_sha(self, owner: str, repo: str, path: str, ref: str) -> str: ...

    async def get_file_content(self, owner: str, repo: str, path: str, ref: str) -> str: ...

    async def get_branch_head(self, owner: str, repo: str, branch: str) -> str: ...

    async def create_ref(self, owner: str, repo: str, ref: str, sha: str) -> dict[str, Any]: ...

    async def update_file(
        self,
        owner: str,
        repo: str,
        path: str,
        *,
        branch: str,
        content: str,
        message: str,
        author: CommitAuthor,
        sha: str,
    ) -> str: ...

    async def create_pull_request(
        self,
        owner: str,
        repo: str,
        *,
        title: str,
        base: str,
        head: str,
        body: str = "",
    ) -> dict[str, Any]: ...


def _repo_path(owner: str, repo: str) -> str:
    return f"/repos/{quote(owner, safe='')}/{quote(repo, safe='')}"


class GitHubHost:
    """Async GitHub client covering the calls the update pipeline needs.

    Use as an async context manager so the underlying connection pool is
    closed when the run ends.
    """

    def __init__(
        self,
        token: str,
        api_base: str = DEFAULT_API_URL,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not token.strip():
            raise HostError("GitHub token is required.")
        self._client = httpx.AsyncClient(
            base_url=api_base.rstrip("/"),
            headers={
                "Accept": JSON_MEDIA_TYPE,
                "Authorization": f"Bearer {token}",
                "X-GitHub-Api-Version": "2022-11-28",
                "User-Agent": "dependents-updater",
            },
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> GitHubHost:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        error: type[HostError],
        params: dict[str, str] | None = None,
        json_body: dict[str, Any] | None = None,
        accept: str | None = None,
    ) -> httpx.Response:
        headers = {"Accept": accept} if accept else None
        try:
            r = await self._client.request(
                method, path, params=params, json=json_body, headers=headers
            )
        except httpx.HTTPError as exc:
            raise error(f"GitHub API request failed {method} {path}: {exc}") from exc
        if r.status_code >= 400:
            try:
                payload = r.json()
            except ValueError:
                payload = {"message": r.text}
            message = payload.get("message", payload) if isinstance(payload, dict) else payload
            raise error(
                f"GitHub API error {r.status_code} {method} {path}: {message}",
                status=r.status_code,
            )
        return r

    async def get_file_sha(self, owner: str, repo: str, path: str, ref: str) -> str:
        """Return the blob sha of a file, needed to update it later."""
        r = await self._request(
            "GET",
            f"{_repo_path(owner, repo)}/contents/{quote(path)}",
            error=RemoteReadError,
            params={"ref": ref},
        )
        data = r.json()
        if not isinstance(data, dict) or "sha" not in data:
            raise RemoteReadError(f"{path} in {owner}/{repo} is not a file")
        return str(data["sha"])

    async def get_file_content(self, owner: str, repo: str, path: str, ref: str) -> str:
        """Return the raw text of a file."""
        r = await self._request(
            "GET",
            f"{_repo_path(owner, repo)}/contents/{quote(path)}",
            error=RemoteReadError,
            params={"ref": ref},
            accept=RAW_MEDIA_TYPE,
        )
        return r.text

    async def get_branch_head(self, owner: str, repo: str, branch: str) -> str:
        """Return the sha of the commit a branch points at."""
        r = await self._request(
            "GET",
            f"{_repo_path(owner, repo)}/branches/{quote(branch)}",
            error=RemoteReadError,
        )
        return str(r.json()["commit"]["sha"])

    async def create_ref(self, owner: str, repo: str, ref: str, sha: str) -> dict[str, Any]:
        """Create a git reference, e.g. `refs/heads/<branch>`, at sha."""
        r = await self._request(
            "POST",
            f"{_repo_path(owner, repo)}/git/refs",
            error=RemoteWriteError,
            json_body={"ref": ref, "sha": sha},
        )
        return r.json()

    async def update_file(
        self,
        owner: str,
        repo: str,
        path: str,
        *,
        branch: str,
        content: str,
        message: str,
        author: CommitAuthor,
        sha: str,
    ) -> str:
        """Commit new file content on a branch and return the commit sha.

        `sha` is the blob sha the content is replacing; GitHub rejects the
        update with 409 when it is stale.
        """
        r = await self._request(
            "PUT",
            f"{_repo_path(owner, repo)}/contents/{quote(path)}",
            error=RemoteWriteError,
            json_body={
                "message": message,
                "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
                "sha": sha,
                "branch": branch,
                "author": author.model_dump(),
            },
        )
        return str(r.json()["commit"]["sha"])

    async def create_pull_request(
        self,
        owner: str,
        repo: str,
        *,
        title: str,
        base: str,
        head: str,
        body: str = "",
    ) -> dict[str, Any]:
        """Open a pull request from head into base."""
        r = await self._request(
            "POST",
            f"{_repo_path(owner, repo)}/pulls",
            error=RemoteWriteError,
            json_body={"title": title, "base": base, "head": head, "body": body},
        )
        return r.json()
