"""CLI entry point for dependents-updater."""

from __future__ import annotations

import argparse
import asyncio
import sys
from importlib.metadata import version as pkg_version
from pathlib import Path

from dependents_updater.config import ConfigError, load_run_config
from dependents_updater.host import GitHubHost
from dependents_updater.models import OutcomeStatus, RunConfig, RunReport
from dependents_updater.pipeline import UpdateOrchestrator
from dependents_updater.shell import fatal, step
from dependents_updater.slug import ParseError, resolve_target_identity

__version__ = pkg_version("dependents-updater")

_STATUS_MARKS = {
    OutcomeStatus.UPDATED: "✓",
    OutcomeStatus.SKIPPED: "–",
    OutcomeStatus.FAILED: "✗",
}


def _load(manifest: str) -> RunConfig:
    try:
        return load_run_config(Path(manifest))
    except ConfigError as exc:
        fatal(str(exc))


async def update_dependents(config: RunConfig) -> RunReport:
    """Run the update pipeline for every dependent against GitHub."""
    async with GitHubHost(config.token, config.api_url) as host:
        return await UpdateOrchestrator(config, host).run()


def print_report(report: RunReport) -> None:
    """Print one summary line per dependent."""
    step("Summary")
    if not report.outcomes:
        print("  Nothing to do")
        return
    for outcome in report.outcomes:
        mark = _STATUS_MARKS[outcome.status]
        line = f"  {mark} {outcome.dependent}: {outcome.status.value}"
        if outcome.status is OutcomeStatus.FAILED:
            line += f" at {outcome.stage.value}"
        if outcome.message:
            line += f" ({outcome.message})"
        if outcome.pull_request_url:
            line += f" {outcome.pull_request_url}"
        print(line)
    if report.failed:
        print(f"\n{len(report.failed)} of {len(report.outcomes)} dependents failed")


def cmd_run(args: argparse.Namespace) -> None:
    """Propagate the package version to every configured dependent."""
    config = _load(args.manifest)
    report = asyncio.run(update_dependents(config))
    print_report(report)
    sys.exit(report.exit_code)


def cmd_check(args: argparse.Namespace) -> None:
    """Validate configuration and locators without contacting GitHub."""
    config = _load(args.manifest)
    step(f"{config.package_name} {config.package_version}")
    print(f"  base branch:   {config.branch}")
    print(f"  branch prefix: {config.branch_name_base}")
    print(f"  author:        {config.author.name} <{config.author.email}>")
    print(f"  pull requests: {'yes' if config.pull_requests else 'no'}")

    step(f"{len(config.dependents)} dependents")
    bad = 0
    for name, locator in config.dependents.items():
        try:
            owner, repo = resolve_target_identity(locator)
        except ParseError as exc:
            bad += 1
            print(f"  ✗ {name}: {exc}")
            continue
        print(f"  {name} → {owner}/{repo}")
    if bad:
        fatal(f"{bad} dependent locator(s) could not be parsed")


def cli(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="dependents-updater",
        description="Open pull requests bumping this package in dependent repositories.",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    for name, func, help_text in (
        ("run", cmd_run, "Update every configured dependent."),
        ("check", cmd_check, "Validate configuration without contacting GitHub."),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument(
            "-m",
            "--manifest",
            default="package.json",
            help="Manifest holding the package and its settings. (default: %(default)s)",
        )
        sub.set_defaults(func=func)

    args = parser.parse_args(argv)
    args.func(args)


if __name__ == "__main__":
    cli()
