"""Data models for dependents-updater.

These Pydantic models represent the core data structures used throughout
the update pipeline: the run configuration, the per-dependent working
record, and the outcome reported for every dependent.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_BASE_BRANCH = "master"
DEFAULT_BRANCH_PREFIX = "autoupdate"
DEFAULT_MANIFEST_PATH = "package.json"
DEFAULT_API_URL = "https://api.github.com"


class CommitAuthor(BaseModel):
    """Identity recorded as the author of update commits.

    The defaults are the bot identity; user overrides are layered on top
    field by field (see `config.resolve_author`).
    """

    model_config = ConfigDict(frozen=True)

    name: str = "semantic-dependents-updates-github bot"
    email: str = "semadep@nowhere.io"


class RunConfig(BaseModel):
    """Process-wide configuration, resolved once and read-only afterwards.

    Attributes:
        package_name: Name of the source package being propagated.
        package_version: Version of the source package to write into dependents.
        dependents: Map of dependent name → git source locator. Order is kept.
        branch: Base branch read from and targeted by pull requests.
        branch_name_base: Prefix of the generated update branches.
        author: Author of the update commits.
        pull_requests: Whether to open a pull request after committing.
        token: GitHub token used to authenticate every request.
        api_url: GitHub REST API base URL.
        manifest_path: Path of the manifest inside each dependent repository.
    """

    model_config = ConfigDict(frozen=True)

    package_name: str
    package_version: str
    dependents: dict[str, str] = Field(default_factory=dict)
    branch: str = DEFAULT_BASE_BRANCH
    branch_name_base: str = DEFAULT_BRANCH_PREFIX
    author: CommitAuthor = Field(default_factory=CommitAuthor)
    pull_requests: bool = True
    token: str = Field(default="", repr=False)
    api_url: str = DEFAULT_API_URL
    manifest_path: str = DEFAULT_MANIFEST_PATH


class Stage(str, Enum):
    """Stages of the per-dependent state machine."""

    START = "start"
    IDENTITY_RESOLVED = "identity-resolved"
    SHA_FETCHED = "sha-fetched"
    CONTENT_FETCHED = "content-fetched"
    SKIPPED = "skipped"
    UPDATE_DECIDED = "update-decided"
    BRANCH_CREATED = "branch-created"
    COMMITTED = "committed"
    PR_OPENED = "pr-opened"
    PR_SKIPPED_BY_CONFIG = "pr-skipped-by-config"
    DONE = "done"
    FAILED = "failed"


class UpdateTarget(BaseModel):
    """Working record for one dependent, private to its pipeline.

    Fields past `base_branch` are filled in as the pipeline advances and
    stay `None` until the corresponding remote call has succeeded.
    """

    target_package_name: str
    host_owner: str
    host_repo: str
    base_branch: str
    old_manifest_sha: str | None = None
    new_branch_name: str | None = None
    update_commit_sha: str | None = None
    stage: Stage = Stage.START

    @property
    def slug(self) -> str:
        return f"{self.host_owner}/{self.host_repo}"


class UpdateDecision(BaseModel):
    """Result of inspecting a dependent's manifest.

    Attributes:
        should_update: True when the recorded version differs from the source.
        key: Dependency bucket the source package was found in, or None.
        current_version: Version recorded in the dependent, or None.
        updated_text: Manifest text with the new version, only when updating.
    """

    should_update: bool
    key: str | None = None
    current_version: str | None = None
    updated_text: str | None = None


class OutcomeStatus(str, Enum):
    UPDATED = "updated"
    SKIPPED = "skipped"
    FAILED = "failed"


class DependentOutcome(BaseModel):
    """How a single dependent's pipeline settled."""

    dependent: str
    status: OutcomeStatus
    stage: Stage
    message: str = ""
    branch: str | None = None
    commit_sha: str | None = None
    pull_request_url: str | None = None


class RunReport(BaseModel):
    """Aggregated outcomes of every dependent in a run."""

    outcomes: list[DependentOutcome] = Field(default_factory=list)

    @property
    def failed(self) -> list[DependentOutcome]:
        return [o for o in self.outcomes if o.status is OutcomeStatus.FAILED]

    @property
    def exit_code(self) -> int:
        return 1 if self.failed else 0
