"""Per-step pipeline errors.

Each error names the state the pipeline was trying to reach and the outcome
category recorded for the repository. The underlying cause is chained.
"""

from repo_xargs.schemas.outcome import OutcomeCategory
from repo_xargs.schemas.repository import PipelineState


class PipelineStepError(Exception):
    """A pipeline step failed for one repository."""

    state: PipelineState = PipelineState.INIT
    category: OutcomeCategory = OutcomeCategory.UNEXPECTED_ERROR

    def __init__(self, repository: str, message: str):
        super().__init__(f"{repository}: {message}")
        self.repository = repository
        self.message = message


class CloneError(PipelineStepError):
    state = PipelineState.CLONED
    category = OutcomeCategory.CLONE_ERROR


class HeadRefError(PipelineStepError):
    state = PipelineState.HEAD_RESOLVED
    category = OutcomeCategory.HEAD_REF_ERROR


class WorktreeError(PipelineStepError):
    state = PipelineState.WORKTREE_READY
    category = OutcomeCategory.WORKTREE_ERROR


class BranchCheckoutError(PipelineStepError):
    state = PipelineState.BRANCH_READY
    category = OutcomeCategory.BRANCH_CHECKOUT_ERROR


class CommandExecutionError(PipelineStepError):
    state = PipelineState.COMMAND_EXECUTED
    category = OutcomeCategory.COMMAND_EXECUTION_ERROR

    def __init__(
        self,
        repository: str,
        message: str,
        exit_code: int | None = None,
        stderr: str = "",
    ):
        super().__init__(repository, message)
        self.exit_code = exit_code
        self.stderr = stderr


class StagingError(PipelineStepError):
    state = PipelineState.CHANGES_STAGED
    category = OutcomeCategory.STAGING_ERROR


class CommitError(PipelineStepError):
    state = PipelineState.COMMITTED
    category = OutcomeCategory.COMMIT_ERROR


class PushError(PipelineStepError):
    state = PipelineState.PUSHED
    category = OutcomeCategory.PUSH_ERROR


class PullRequestError(PipelineStepError):
    state = PipelineState.PULL_REQUEST_OPENED
    category = OutcomeCategory.PULL_REQUEST_ERROR


class ReviewerRequestError(Exception):
    """Requesting reviewers or assignees failed. Never fails the pipeline."""

    def __init__(self, repository: str, number: int, message: str):
        super().__init__(f"{repository}#{number}: {message}")
        self.repository = repository
        self.number = number
