"""Per-repository pipeline and the orchestrator that runs it in parallel."""

from repo_xargs.pipeline.commands import CommandResult, CommandRunner
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
from repo_xargs.pipeline.orchestrator import Orchestrator, RunFailedError, RunReport
from repo_xargs.pipeline.processor import RepositoryPipeline

__all__ = [
    "BranchCheckoutError",
    "CloneError",
    "CommandExecutionError",
    "CommandResult",
    "CommandRunner",
    "CommitError",
    "HeadRefError",
    "Orchestrator",
    "PipelineStepError",
    "PullRequestError",
    "PushError",
    "RepositoryPipeline",
    "ReviewerRequestError",
    "RunFailedError",
    "RunReport",
    "StagingError",
    "WorktreeError",
]
