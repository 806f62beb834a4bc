from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from repo_xargs.auth import AuthError, configure_host
from repo_xargs.config import get_settings
from repo_xargs.core.logging import setup_logging
from repo_xargs.observability.metrics import start_metrics_server
from repo_xargs.pipeline.orchestrator import Orchestrator
from repo_xargs.reporting import render_summary
from repo_xargs.schemas.run import RunConfiguration
from repo_xargs.selection import (
    InvalidRepositoryNameError,
    NoRepositorySourceError,
    select_repositories,
)
from repo_xargs.vcs.git_cli import GitCliBackend

logger = logging.getLogger(__name__)


def _csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="repo-xargs",
        description="Run a command against many repositories and open a pull request for each.",
    )
    source = p.add_argument_group("repository selection")
    source.add_argument("--github-org", type=str, default=None)
    source.add_argument("--repo", action="append", default=[], dest="repos")
    source.add_argument("--repos", type=Path, default=None, dest="repos_file")

    run = p.add_argument_group("run options")
    run.add_argument("--branch-name", type=str, default="")
    run.add_argument("--base-branch-name", type=str, default="")
    run.add_argument("--clone-branch", type=str, default="")
    run.add_argument("--clone-depth", type=int, default=None)
    run.add_argument("--commit-message", type=str, default="")
    run.add_argument("--pull-request-title", type=str, default="")
    run.add_argument("--pull-request-description", type=str, default=None)
    run.add_argument("--max-concurrent-repos", type=int, default=None)
    run.add_argument("--command-timeout", type=float, default=None)
    run.add_argument("--dry-run", action="store_true")
    run.add_argument("--skip-pull-requests", action="store_true")
    run.add_argument("--skip-archived-repos", action="store_true")
    run.add_argument("--draft", action="store_true")
    run.add_argument("--reviewers", type=_csv, default=[])
    run.add_argument("--team-reviewers", type=_csv, default=[])
    run.add_argument("--assignees", type=_csv, default=[])

    p.add_argument("--internal", action="store_true", help="Use a GitHub Enterprise host")
    p.add_argument("--loglevel", type=str.upper, default=None)
    p.add_argument("command", nargs=argparse.REMAINDER, help="Command to run in each clone")
    args = p.parse_args(argv)

    if args.command and args.command[0] == "--":
        args.command = args.command[1:]
    if not args.command:
        p.error("a command to run is required, e.g. repo-xargs --repo acme/app -- ./fix.sh")
    return args


def _stdin_lines() -> list[str]:
    if sys.stdin is None or sys.stdin.isatty():
        return []
    return sys.stdin.read().splitlines()


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    settings = get_settings()
    setup_logging(args.loglevel)

    try:
        config = RunConfiguration.from_settings(
            settings,
            command=args.command,
            branch_name=args.branch_name,
            base_branch_name=args.base_branch_name,
            clone_branch=args.clone_branch,
            clone_depth=args.clone_depth,
            commit_message=args.commit_message,
            pull_request_title=args.pull_request_title,
            pull_request_description=args.pull_request_description,
            max_concurrent_repos=args.max_concurrent_repos,
            command_timeout_seconds=args.command_timeout,
            dry_run=args.dry_run,
            skip_pull_requests=args.skip_pull_requests,
            skip_archived_repos=args.skip_archived_repos,
            draft=args.draft,
            reviewers=args.reviewers,
            team_reviewers=args.team_reviewers,
            assignees=args.assignees,
        )
    except ValidationError as e:
        logger.error(f"Invalid options: {e}")
        return 2

    try:
        host = configure_host(settings, internal=args.internal)
    except AuthError as e:
        logger.error(str(e))
        return 1

    if settings.metrics_enabled:
        start_metrics_server(port=settings.metrics_port)

    with host:
        try:
            selection = select_repositories(
                host,
                org=args.github_org,
                repos=args.repos,
                repos_file=args.repos_file,
                stdin_lines=_stdin_lines(),
            )
        except (NoRepositorySourceError, InvalidRepositoryNameError, OSError) as e:
            logger.error(str(e))
            return 2

        orchestrator = Orchestrator(host=host, git=GitCliBackend(auth_token=host.token))
        report = orchestrator.run(config, selection.repositories)

    print(render_summary(report, missing=selection.missing))
    return 1 if report.failed or selection.missing else 0


if __name__ == "__main__":
    sys.exit(main())
