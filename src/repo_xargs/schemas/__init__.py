"""Data model shared by the pipeline, orchestrator and collaborators."""

from repo_xargs.schemas.outcome import Outcome, OutcomeCategory
from repo_xargs.schemas.pull_request import NewPullRequest, PullRequest, ReviewRequest
from repo_xargs.schemas.repository import (
    LocalRepositoryHandle,
    PipelineResult,
    PipelineState,
    RemoteRepositoryRef,
)
from repo_xargs.schemas.run import RunConfiguration

__all__ = [
    "LocalRepositoryHandle",
    "NewPullRequest",
    "Outcome",
    "OutcomeCategory",
    "PipelineResult",
    "PipelineState",
    "PullRequest",
    "RemoteRepositoryRef",
    "ReviewRequest",
    "RunConfiguration",
]
