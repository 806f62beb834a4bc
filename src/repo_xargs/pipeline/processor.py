"""Per-repository mutation pipeline.

For one repository:

1. Clone it into a fresh directory under the system temp root. A new
   directory is made for every repository on every run and never removed,
   so heavy use will grow the temp directory.
2. Resolve HEAD and obtain the worktree.
3. Create the run's branch from HEAD and check it out, pulling the remote
   branch first if a previous run already pushed it.
4. Run the operator's command inside the clone.
5. Stage every deleted, modified and untracked file.
6. Commit, unless nothing was staged (a successful no-op).
7. Push the branch, unless this is a dry run.
8. Open a pull request against the base branch, unless one is already open
   or pull requests are disabled.

The first failing step ends the pipeline for that repository. Exactly one
outcome is recorded per repository, and the partial result is returned.
"""

import logging
import tempfile
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path

from repo_xargs.core.logging import repo_ctx
from repo_xargs.hosts.base import RemoteHost
from repo_xargs.hosts.errors import HostAPIError
from repo_xargs.observability.metrics import METRICS, observe_stage
from repo_xargs.pipeline.commands import CommandRunner
from repo_xargs.pipeline.errors import (
    BranchCheckoutError,
    CloneError,
    CommandExecutionError,
    CommitError,
    HeadRefError,
    PipelineStepError,
    PullRequestError,
    PushError,
    ReviewerRequestError,
    StagingError,
    WorktreeError,
)
from repo_xargs.schemas.outcome import Outcome, OutcomeCategory
from repo_xargs.schemas.pull_request import NewPullRequest, ReviewRequest
from repo_xargs.schemas.repository import (
    LocalRepositoryHandle,
    PipelineResult,
    PipelineState,
    RemoteRepositoryRef,
)
from repo_xargs.schemas.run import RunConfiguration
from repo_xargs.tracking.outcomes import OutcomeTracker
from repo_xargs.vcs.base import GitBackend, Worktree
from repo_xargs.vcs.errors import GitCommandError

logger = logging.getLogger(__name__)

DIRECTORY_PREFIX = "repo-xargs"
STDERR_EXCERPT_CHARS = 2000


class RepositoryPipeline:
    """Runs the clone → command → commit → push → PR workflow for one repository at a time.

    A single instance is shared by every worker thread of a run, so it holds
    no per-repository state of its own.
    """

    def __init__(
        self,
        config: RunConfiguration,
        host: RemoteHost,
        git: GitBackend,
        tracker: OutcomeTracker,
        runner: CommandRunner | None = None,
        workspace_root: Path | None = None,
    ):
        """
        Initialize the pipeline.

        Args:
            config: Options for the run, shared read-only
            host: Remote host capability
            git: Local version-control capability
            tracker: Sink for the outcome of each repository
            runner: Executes the operator command
            workspace_root: Parent of clone directories (system temp if not provided)
        """
        self.config = config
        self.host = host
        self.git = git
        self.tracker = tracker
        self.runner = runner or CommandRunner()
        self.workspace_root = workspace_root

    def process(self, repo: RemoteRepositoryRef) -> PipelineResult:
        """Run the pipeline for ``repo`` and record its outcome."""
        token = repo_ctx.set(repo.full_name)
        try:
            return self._process(repo)
        finally:
            repo_ctx.reset(token)

    def _process(self, repo: RemoteRepositoryRef) -> PipelineResult:
        result = PipelineResult(remote=repo)

        if self.config.skip_archived_repos and repo.archived:
            logger.info("Skipping archived repository")
            result.state = PipelineState.DONE
            result.outcome = self._record(repo, OutcomeCategory.ARCHIVED_SKIPPED)
            return result

        logger.debug("Starting to process repository")
        try:
            category, pull_request_url = self._run(repo, result)
        except PipelineStepError as e:
            cause = e.__cause__ or e
            logger.error(
                "Error encountered while processing repository",
                extra={"failed_state": e.state.value, "error": str(cause)},
            )
            result.outcome = self._record(repo, e.category, detail=e.message)
            return result
        except Exception as e:
            logger.exception("Unexpected error while processing repository")
            result.outcome = self._record(
                repo, OutcomeCategory.UNEXPECTED_ERROR, detail=f"{type(e).__name__}: {e}"
            )
            return result

        result.state = PipelineState.DONE
        result.pull_request_url = pull_request_url
        result.outcome = self._record(repo, category, pull_request_url=pull_request_url)
        logger.info("Repository successfully processed", extra={"outcome": category.value})
        return result

    def _record(
        self,
        repo: RemoteRepositoryRef,
        category: OutcomeCategory,
        detail: str | None = None,
        pull_request_url: str | None = None,
    ) -> Outcome:
        METRICS.pipeline_runs_total.labels(outcome=category.value).inc()
        return self.tracker.record(
            Outcome(
                repository=repo.full_name,
                category=category,
                detail=detail,
                pull_request_url=pull_request_url,
            )
        )

    @contextmanager
    def _stage(self, name: str) -> Iterator[None]:
        started = time.monotonic()
        try:
            yield
        finally:
            observe_stage(stage=name, duration_seconds=time.monotonic() - started)

    def _run(
        self, repo: RemoteRepositoryRef, result: PipelineResult
    ) -> tuple[OutcomeCategory, str | None]:
        name = repo.full_name

        with self._stage("clone"):
            directory, local = self._clone(repo)
        result.directory = directory
        result.local = LocalRepositoryHandle(path=directory, repository=local)
        result.state = PipelineState.CLONED

        try:
            head = self.git.head(local)
        except GitCommandError as e:
            raise HeadRefError(name, f"could not resolve HEAD: {e}") from e
        result.local.head = head
        result.state = PipelineState.HEAD_RESOLVED

        try:
            worktree = self.git.worktree(local)
        except GitCommandError as e:
            raise WorktreeError(name, f"could not open worktree: {e}") from e
        result.state = PipelineState.WORKTREE_READY

        branch = self._checkout_branch(repo, local, worktree, head)
        result.branch = branch
        result.state = PipelineState.BRANCH_READY

        with self._stage("command"):
            self._execute_command(repo, directory)
        result.state = PipelineState.COMMAND_EXECUTED

        staged = self._stage_changes(repo, worktree)
        result.state = PipelineState.CHANGES_STAGED
        if not staged:
            logger.info("Command made no file changes, nothing to commit")
            return OutcomeCategory.NO_CHANGES, None

        try:
            sha = self.git.commit(worktree, self.config.commit_message)
        except GitCommandError as e:
            raise CommitError(name, f"commit failed: {e}") from e
        logger.info("Committed changes", extra={"commit": sha, "files": len(staged)})
        result.state = PipelineState.COMMITTED

        if self.config.dry_run:
            logger.info("Dry run, skipping push and pull request")
            return OutcomeCategory.COMMITTED_DRY_RUN, None

        with self._stage("push"):
            try:
                self.git.push(local, branch)
            except GitCommandError as e:
                raise PushError(name, f"push of {branch} failed: {e}") from e
        result.state = PipelineState.PUSHED

        if self.config.skip_pull_requests:
            logger.info("Pull requests disabled, branch pushed only")
            return OutcomeCategory.PUSHED_WITHOUT_PULL_REQUEST, None

        with self._stage("pull_request"):
            category, url = self._open_pull_request(repo, branch)
        result.state = PipelineState.PULL_REQUEST_OPENED
        return category, url

    def _clone(self, repo: RemoteRepositoryRef) -> tuple[Path, object]:
        name = repo.full_name
        try:
            directory = Path(
                tempfile.mkdtemp(prefix=f"{DIRECTORY_PREFIX}-{repo.name}-", dir=self.workspace_root)
            )
        except OSError as e:
            raise CloneError(name, f"could not create clone directory: {e}") from e

        source_branch = self.config.clone_branch_for(repo.default_branch)
        logger.debug(
            "Cloning repository",
            extra={
                "path": str(directory),
                "branch": source_branch,
                "depth": self.config.clone_depth,
            },
        )
        try:
            local = self.git.clone(
                self.host.clone_url(repo),
                directory,
                depth=self.config.clone_depth,
                branch=source_branch,
            )
        except (GitCommandError, OSError) as e:
            raise CloneError(name, f"clone failed: {e}") from e
        return directory, local

    def _checkout_branch(
        self,
        repo: RemoteRepositoryRef,
        local: object,
        worktree: Worktree,
        head: str,
    ) -> str:
        name = repo.full_name
        branch = self.config.branch_name
        if not branch:
            raise BranchCheckoutError(name, "no branch name resolved for this run")

        try:
            self.git.create_branch(local, branch, head)
            self.git.checkout(worktree, branch)
        except GitCommandError as e:
            raise BranchCheckoutError(name, f"could not check out {branch}: {e}") from e

        # A previous run may already have pushed this branch; build on top of it
        try:
            if self.git.remote_branch_exists(local, branch):
                self.git.pull(worktree, branch)
                logger.info(f"Pulled latest {branch} from remote")
        except GitCommandError as e:
            logger.warning(f"Could not pull remote branch {branch}: {e}")
            self.tracker.record_warning(name, OutcomeCategory.BRANCH_REMOTE_PULL_FAILED, str(e))

        return branch

    def _execute_command(self, repo: RemoteRepositoryRef, directory: Path) -> None:
        name = repo.full_name
        env = {
            "XARGS_DRY_RUN": str(self.config.dry_run).lower(),
            "XARGS_REPO_NAME": repo.name,
            "XARGS_REPO_OWNER": repo.owner,
        }
        logger.debug("Executing command", extra={"command": list(self.config.command)})
        try:
            completed = self.runner.run(
                self.config.command,
                cwd=directory,
                env=env,
                timeout=self.config.command_timeout_seconds,
            )
        except OSError as e:
            raise CommandExecutionError(name, f"could not launch command: {e}") from e

        if completed.stdout:
            logger.debug("Command output", extra={"stdout": completed.stdout})
        if not completed.succeeded:
            if completed.timed_out:
                reason = "timed out"
            else:
                reason = f"exited with status {completed.exit_code}"
            raise CommandExecutionError(
                name,
                f"command {reason}",
                exit_code=completed.exit_code,
                stderr=completed.stderr[-STDERR_EXCERPT_CHARS:],
            )

    def _stage_changes(self, repo: RemoteRepositoryRef, worktree: Worktree) -> list[str]:
        name = repo.full_name
        try:
            status = self.git.status(worktree)
        except GitCommandError as e:
            raise StagingError(name, f"could not read worktree status: {e}") from e

        logger.debug(
            "Worktree status",
            extra={
                "modified": len(status.modified),
                "deleted": len(status.deleted),
                "untracked": len(status.untracked),
            },
        )
        try:
            self.git.add(worktree, status.paths)
            return self.git.staged_paths(worktree)
        except GitCommandError as e:
            raise StagingError(name, f"could not stage changes: {e}") from e

    def _open_pull_request(
        self, repo: RemoteRepositoryRef, branch: str
    ) -> tuple[OutcomeCategory, str]:
        name = repo.full_name
        base = self.config.base_branch_for(repo.default_branch)

        try:
            existing = self.host.list_pull_requests(repo, head=branch, base=base)
        except HostAPIError as e:
            raise PullRequestError(name, f"could not list pull requests: {e}") from e
        if existing:
            logger.info(f"Pull request already open: {existing[0].html_url}")
            return OutcomeCategory.PULL_REQUEST_ALREADY_OPEN, existing[0].html_url

        request = NewPullRequest(
            title=self.config.pull_request_title,
            body=self.config.pull_request_description,
            head=branch,
            base=base,
            draft=self.config.draft,
        )
        try:
            pr = self.host.create_pull_request(repo, request)
        except HostAPIError as e:
            raise PullRequestError(name, f"could not open pull request: {e}") from e
        METRICS.pr_created_total.inc()
        logger.info(f"Opened pull request {pr.html_url}")

        self._request_review(repo, pr.number)
        return OutcomeCategory.PULL_REQUEST_OPENED, pr.html_url

    def _request_review(self, repo: RemoteRepositoryRef, number: int) -> None:
        """Ask for reviewers and assignees, each failing on its own as a warning."""
        review = ReviewRequest(
            reviewers=list(self.config.reviewers),
            team_reviewers=list(self.config.team_reviewers),
        )
        assignees = list(self.config.assignees)
        follow_ups: list[tuple[str, Callable[[], None]]] = []
        if not review.empty:
            follow_ups.append(
                ("request reviewers", lambda: self.host.request_reviewers(repo, number, review))
            )
        if assignees:
            follow_ups.append(
                ("add assignees", lambda: self.host.add_assignees(repo, number, assignees))
            )

        for action, call in follow_ups:
            try:
                self._follow_up(repo, number, action, call)
            except ReviewerRequestError as e:
                METRICS.reviewer_request_failures_total.inc()
                logger.warning(str(e))
                self.tracker.record_warning(
                    repo.full_name, OutcomeCategory.REVIEWER_REQUEST_ERROR, str(e)
                )

    @staticmethod
    def _follow_up(
        repo: RemoteRepositoryRef, number: int, action: str, call: Callable[[], None]
    ) -> None:
        try:
            call()
        except HostAPIError as e:
            raise ReviewerRequestError(repo.full_name, number, f"could not {action}: {e}") from e
