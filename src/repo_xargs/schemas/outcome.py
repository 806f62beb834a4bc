"""Schemas for per-repository outcomes."""

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class OutcomeCategory(str, Enum):
    """Terminal classification of one repository in a run."""

    # Success
    PULL_REQUEST_OPENED = "pull_request_opened"
    PULL_REQUEST_ALREADY_OPEN = "pull_request_already_open"
    NO_CHANGES = "no_changes"
    COMMITTED_DRY_RUN = "committed_dry_run"
    PUSHED_WITHOUT_PULL_REQUEST = "pushed_without_pull_request"
    ARCHIVED_SKIPPED = "archived_skipped"

    # Errors
    CLONE_ERROR = "clone_error"
    HEAD_REF_ERROR = "head_ref_error"
    WORKTREE_ERROR = "worktree_error"
    BRANCH_CHECKOUT_ERROR = "branch_checkout_error"
    COMMAND_EXECUTION_ERROR = "command_execution_error"
    STAGING_ERROR = "staging_error"
    COMMIT_ERROR = "commit_error"
    PUSH_ERROR = "push_error"
    PULL_REQUEST_ERROR = "pull_request_error"
    UNEXPECTED_ERROR = "unexpected_error"

    # Warnings, never a primary outcome
    REVIEWER_REQUEST_ERROR = "reviewer_request_error"
    BRANCH_REMOTE_PULL_FAILED = "branch_remote_pull_failed"

    @property
    def is_error(self) -> bool:
        return self in _ERROR_CATEGORIES

    @property
    def is_warning(self) -> bool:
        return self in _WARNING_CATEGORIES


_ERROR_CATEGORIES = frozenset(
    {
        OutcomeCategory.CLONE_ERROR,
        OutcomeCategory.HEAD_REF_ERROR,
        OutcomeCategory.WORKTREE_ERROR,
        OutcomeCategory.BRANCH_CHECKOUT_ERROR,
        OutcomeCategory.COMMAND_EXECUTION_ERROR,
        OutcomeCategory.STAGING_ERROR,
        OutcomeCategory.COMMIT_ERROR,
        OutcomeCategory.PUSH_ERROR,
        OutcomeCategory.PULL_REQUEST_ERROR,
        OutcomeCategory.UNEXPECTED_ERROR,
    }
)

_WARNING_CATEGORIES = frozenset(
    {
        OutcomeCategory.REVIEWER_REQUEST_ERROR,
        OutcomeCategory.BRANCH_REMOTE_PULL_FAILED,
    }
)


class Outcome(BaseModel):
    """The single outcome recorded for one repository."""

    model_config = ConfigDict(frozen=True)

    repository: str = Field(..., description="Repository full name (owner/name)")
    category: OutcomeCategory
    detail: str | None = Field(None, description="Underlying cause, if any")
    pull_request_url: str | None = None
    recorded_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def is_error(self) -> bool:
        return self.category.is_error
