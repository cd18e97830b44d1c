"""Update pipeline: resolve → read → decide → branch → commit → pull request.

For every configured dependent this module runs one short pipeline
against the repository host:
1. Resolve the dependent's owner/repo from its git locator
2. Fetch the manifest's blob sha (needed to update it safely)
3. Fetch the manifest's raw text
4. Decide whether the source package's version needs changing
5. Create an update branch from the head of the base branch
6. Commit the updated manifest on that branch
7. Open a pull request (unless disabled in configuration)

All dependents are launched at once and awaited together. A failure at any
step ends that dependent's pipeline only; every dependent reports an
outcome and the run's exit status reflects whether any of them failed.
"""

from __future__ import annotations

import asyncio

from .deps import ManifestError, decide_update
from .host import HostError, RemoteReadError, RemoteWriteError, RepositoryHost
from .models import (
    DependentOutcome,
    OutcomeStatus,
    RunConfig,
    RunReport,
    Stage,
    UpdateTarget,
)
from .shell import say, step
from .slug import ParseError, resolve_target_identity
from .versions import generate_branch_name


class UpdateOrchestrator:
    """Propagates the source package's version to every configured dependent."""

    def __init__(self, config: RunConfig, host: RepositoryHost) -> None:
        self.config = config
        self.host = host

    @property
    def package_name(self) -> str:
        return self.config.package_name

    @property
    def package_version(self) -> str:
        return self.config.package_version

    async def run(self) -> RunReport:
        """Run every dependent's pipeline concurrently and collect outcomes."""
        deps = self.config.dependents
        if not deps:
            step("No dependents configured")
            return RunReport()

        step(
            f"Updating this package {self.package_name} to version "
            f"{self.package_version} in dependent packages:"
        )
        outcomes = await asyncio.gather(
            *(self._settle(name, locator) for name, locator in deps.items())
        )
        return RunReport(outcomes=list(outcomes))

    async def _settle(self, name: str, locator: str) -> DependentOutcome:
        # Unexpected errors in one pipeline must not take down its siblings
        try:
            return await self.update_dependency(name, locator)
        except Exception as exc:  # noqa: BLE001 - reported as a failed outcome
            say(name, f"✗ unexpected error: {exc!r}")
            return DependentOutcome(
                dependent=name,
                status=OutcomeStatus.FAILED,
                stage=Stage.FAILED,
                message=repr(exc),
            )

    async def update_dependency(self, name: str, locator: str) -> DependentOutcome:
        """Run the pipeline for one dependent and report how it settled."""
        say(name, f"Trying to update dependent package {name} at {locator}")
        target: UpdateTarget | None = None
        try:
            owner, repo = resolve_target_identity(locator)
            target = UpdateTarget(
                target_package_name=name,
                host_owner=owner,
                host_repo=repo,
                base_branch=self.config.branch,
                stage=Stage.IDENTITY_RESOLVED,
            )

            target.old_manifest_sha = await self.fetch_manifest_sha(target)
            target.stage = Stage.SHA_FETCHED

            raw_text = await self.fetch_manifest_content(target)
            target.stage = Stage.CONTENT_FETCHED

            decision = decide_update(raw_text, self.package_name, self.package_version)
            if decision.key is None:
                target.stage = Stage.SKIPPED
                return self._skipped(
                    target,
                    f"Package {name} doesn't have {self.package_name} as dependency",
                )
            if not decision.should_update:
                target.stage = Stage.SKIPPED
                return self._skipped(
                    target,
                    f"Package {name} already have {self.package_name} "
                    f"at version {self.package_version}",
                )
            updated_text = decision.updated_text
            if updated_text is None:
                raise ManifestError(f"No updated manifest text for {name}")
            target.stage = Stage.UPDATE_DECIDED
            say(
                name,
                f"Updating {self.package_name} version at {name} "
                f"from {decision.current_version} to {self.package_version} "
                f"({decision.key})",
            )

            await self.create_branch(target)
            target.stage = Stage.BRANCH_CREATED

            await self.commit_manifest_update(target, updated_text)
            target.stage = Stage.COMMITTED

            pr_url: str | None = None
            if self.config.pull_requests:
                pr_url = await self.open_pull_request(target, decision.current_version)
                target.stage = Stage.PR_OPENED
                say(name, f"Created a PR for {name}: {pr_url or target.new_branch_name}")
            else:
                target.stage = Stage.PR_SKIPPED_BY_CONFIG
                say(name, f"Pull requests disabled; pushed branch {target.new_branch_name}")

            target.stage = Stage.DONE
            return DependentOutcome(
                dependent=name,
                status=OutcomeStatus.UPDATED,
                stage=Stage.DONE,
                message=f"{decision.current_version} → {self.package_version}",
                branch=target.new_branch_name,
                commit_sha=target.update_commit_sha,
                pull_request_url=pr_url,
            )
        except (ParseError, HostError, ManifestError) as exc:
            stage = target.stage if target is not None else Stage.START
            say(name, f"✗ failed after {stage.value}: {exc}")
            return DependentOutcome(
                dependent=name,
                status=OutcomeStatus.FAILED,
                stage=stage,
                message=str(exc),
                branch=target.new_branch_name if target is not None else None,
                commit_sha=target.update_commit_sha if target is not None else None,
            )

    def _skipped(self, target: UpdateTarget, msg: str) -> DependentOutcome:
        say(target.target_package_name, msg)
        return DependentOutcome(
            dependent=target.target_package_name,
            status=OutcomeStatus.SKIPPED,
            stage=Stage.SKIPPED,
            message=msg,
        )

    async def fetch_manifest_sha(self, target: UpdateTarget) -> str:
        """Fetch the blob sha of the dependent's manifest on the base branch."""
        try:
            return await self.host.get_file_sha(
                target.host_owner,
                target.host_repo,
                self.config.manifest_path,
                target.base_branch,
            )
        except HostError as exc:
            raise RemoteReadError(
                f"Couldn't get {self.config.manifest_path} of "
                f"{target.target_package_name}: {exc}",
                status=exc.status,
            ) from exc

    async def fetch_manifest_content(self, target: UpdateTarget) -> str:
        """Fetch the raw text of the dependent's manifest on the base branch."""
        try:
            return await self.host.get_file_content(
                target.host_owner,
                target.host_repo,
                self.config.manifest_path,
                target.base_branch,
            )
        except HostError as exc:
            raise RemoteReadError(
                f"Couldn't get {self.config.manifest_path} of "
                f"{target.target_package_name}: {exc}",
                status=exc.status,
            ) from exc

    async def create_branch(self, target: UpdateTarget) -> None:
        """Create the update branch from the current head of the base branch."""
        target.new_branch_name = generate_branch_name(
            self.config.branch_name_base, self.package_version
        )
        try:
            sha = await self.host.get_branch_head(
                target.host_owner, target.host_repo, target.base_branch
            )
        except HostError as exc:
            raise RemoteWriteError(
                f"Couldn't get current head of {target.target_package_name}: {exc}",
                status=exc.status,
            ) from exc
        try:
            await self.host.create_ref(
                target.host_owner,
                target.host_repo,
                f"refs/heads/{target.new_branch_name}",
                sha,
            )
        except HostError as exc:
            raise RemoteWriteError(
                f"Couldn't create a new branch for {target.target_package_name} "
                f"from sha {sha}: {exc}",
                status=exc.status,
            ) from exc

    async def commit_manifest_update(self, target: UpdateTarget, updated_text: str) -> None:
        """Commit the updated manifest on the update branch."""
        if target.old_manifest_sha is None or target.new_branch_name is None:
            raise RuntimeError("Manifest sha and update branch are required to commit")
        message = (
            f"chore(package): update {self.package_name} to version {self.package_version}"
        )
        try:
            target.update_commit_sha = await self.host.update_file(
                target.host_owner,
                target.host_repo,
                self.config.manifest_path,
                branch=target.new_branch_name,
                content=updated_text,
                message=message,
                author=self.config.author,
                sha=target.old_manifest_sha,
            )
        except HostError as exc:
            raise RemoteWriteError(
                f"Couldn't commit a change to {self.config.manifest_path} "
                f"for {target.target_package_name}: {exc}",
                status=exc.status,
            ) from exc

    async def open_pull_request(
        self, target: UpdateTarget, current_version: str | None = None
    ) -> str | None:
        """Open a pull request from the update branch into the base branch.

        Returns:
            The pull request's html URL when the host reports one.
        """
        if target.update_commit_sha is None or target.new_branch_name is None:
            raise RuntimeError("An update commit is required to open a pull request")
        body = f"Updates `{self.package_name}` to version `{self.package_version}`."
        if current_version:
            body += f"\n\nPreviously `{current_version}`."
        try:
            pr = await self.host.create_pull_request(
                target.host_owner,
                target.host_repo,
                title=f"Update {self.package_name} to version {self.package_version}",
                base=target.base_branch,
                head=target.new_branch_name,
                body=body,
            )
        except HostError as exc:
            raise RemoteWriteError(
                f"Couldn't create a PR for {target.target_package_name}: {exc}",
                status=exc.status,
            ) from exc
        return pr.get("html_url")
