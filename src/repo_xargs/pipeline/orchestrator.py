"""Runs the repository pipeline over many repositories in parallel."""

import logging
import threading
from collections.abc import Callable, Iterable
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from uuid import uuid4

from repo_xargs.core.logging import repo_ctx, run_id_ctx
from repo_xargs.hosts.base import RemoteHost
from repo_xargs.observability.metrics import METRICS
from repo_xargs.pipeline.commands import CommandRunner
from repo_xargs.pipeline.processor import RepositoryPipeline
from repo_xargs.schemas.outcome import Outcome, OutcomeCategory
from repo_xargs.schemas.repository import PipelineResult, RemoteRepositoryRef
from repo_xargs.schemas.run import RunConfiguration
from repo_xargs.tracking.outcomes import OutcomeTracker
from repo_xargs.vcs.base import GitBackend

logger = logging.getLogger(__name__)

PipelineFactory = Callable[[RunConfiguration, OutcomeTracker], RepositoryPipeline]


@dataclass
class RunReport:
    """Aggregate of a run, handed to reporting once every pipeline finished."""

    run_id: str
    branch: str
    results: list[PipelineResult] = field(default_factory=list)
    outcomes: dict[str, Outcome] = field(default_factory=dict)
    warnings: list[Outcome] = field(default_factory=list)

    @property
    def errors(self) -> dict[str, str]:
        return {
            repo: outcome.detail or outcome.category.value
            for repo, outcome in sorted(self.outcomes.items())
            if outcome.is_error
        }

    @property
    def failed(self) -> bool:
        return bool(self.errors)

    def raise_for_failures(self) -> None:
        if self.failed:
            raise RunFailedError(self)


class RunFailedError(Exception):
    """At least one repository in the run failed."""

    def __init__(self, report: RunReport):
        failed = ", ".join(report.errors)
        super().__init__(f"{len(report.errors)} repositories failed: {failed}")
        self.report = report


class Orchestrator:
    """
    Fans the pipeline out over a repository list.

    - At most ``max_concurrent_repos`` pipelines run at once (0 = no limit)
    - A failing repository never affects the others
    - Results are collected only after every pipeline finished
    """

    def __init__(
        self,
        host: RemoteHost,
        git: GitBackend,
        runner: CommandRunner | None = None,
        workspace_root: Path | None = None,
        pipeline_factory: PipelineFactory | None = None,
    ):
        self.host = host
        self.git = git
        self.runner = runner
        self.workspace_root = workspace_root
        self.pipeline_factory = pipeline_factory or self._default_pipeline

    def _default_pipeline(
        self, config: RunConfiguration, tracker: OutcomeTracker
    ) -> RepositoryPipeline:
        return RepositoryPipeline(
            config,
            host=self.host,
            git=self.git,
            tracker=tracker,
            runner=self.runner,
            workspace_root=self.workspace_root,
        )

    def run(
        self,
        config: RunConfiguration,
        repos: Iterable[RemoteRepositoryRef],
        tracker: OutcomeTracker | None = None,
    ) -> RunReport:
        """Process every repository and return the aggregate report."""
        # Fix the branch name once so every repository shares it
        config = config.with_resolved_branch()
        if tracker is None:
            tracker = OutcomeTracker()
        unique = _dedupe(repos)
        report = RunReport(run_id=uuid4().hex[:12], branch=config.branch_name)

        if not unique:
            logger.warning("No repositories selected, nothing to do")
            return report

        workers = config.max_concurrent_repos or len(unique)
        pipeline = self.pipeline_factory(config, tracker)
        slots = threading.BoundedSemaphore(workers)

        logger.info(
            f"Run {report.run_id}: processing {len(unique)} repositories "
            f"on branch {config.branch_name}",
            extra={"max_concurrent_repos": config.max_concurrent_repos},
        )

        futures: list[tuple[RemoteRepositoryRef, Future[PipelineResult]]] = []
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="repo-xargs") as pool:
            for repo in unique:
                future = pool.submit(self._work, pipeline, repo, slots, report.run_id)
                futures.append((repo, future))
        # Leaving the executor block waits for every task

        for repo, future in futures:
            result = self._collect(repo, future, tracker)
            if result.cloned:
                report.results.append(result)

        report.outcomes = tracker.snapshot()
        report.warnings = tracker.warnings()
        logger.info(
            f"Run finished: {len(report.outcomes) - len(report.errors)} succeeded, "
            f"{len(report.errors)} failed"
        )
        return report

    def _work(
        self,
        pipeline: RepositoryPipeline,
        repo: RemoteRepositoryRef,
        slots: threading.BoundedSemaphore,
        run_id: str,
    ) -> PipelineResult:
        run_id_ctx.set(run_id)
        with slots:
            METRICS.active_pipelines.inc()
            try:
                return pipeline.process(repo)
            finally:
                METRICS.active_pipelines.dec()

    def _collect(
        self,
        repo: RemoteRepositoryRef,
        future: Future[PipelineResult],
        tracker: OutcomeTracker,
    ) -> PipelineResult:
        """Take ownership of a finished task's result, folding any escaped error into an outcome."""
        try:
            return future.result()
        except Exception as e:
            token = repo_ctx.set(repo.full_name)
            try:
                logger.error(f"Pipeline task crashed: {type(e).__name__}: {e}")
            finally:
                repo_ctx.reset(token)
            outcome = tracker.get(repo.full_name)
            if outcome is None:
                outcome = tracker.record(
                    Outcome(
                        repository=repo.full_name,
                        category=OutcomeCategory.UNEXPECTED_ERROR,
                        detail=f"{type(e).__name__}: {e}",
                    )
                )
            return PipelineResult(remote=repo, outcome=outcome)


def _dedupe(repos: Iterable[RemoteRepositoryRef]) -> list[RemoteRepositoryRef]:
    seen: dict[str, RemoteRepositoryRef] = {}
    for repo in repos:
        if repo.full_name in seen:
            logger.debug(f"Ignoring duplicate repository {repo.full_name}")
            continue
        seen[repo.full_name] = repo
    return list(seen.values())
