"""Schema for the options of a single run."""

import secrets
import shlex
import string

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from repo_xargs.config import Settings

DEFAULT_COMMIT_MESSAGE = "[repo-xargs] programmatic commit"
DEFAULT_PULL_REQUEST_TITLE = "[repo-xargs] programmatic pull request"
DEFAULT_PULL_REQUEST_DESCRIPTION = "This pull request was opened programmatically by repo-xargs."
DEFAULT_BRANCH_PREFIX = "repo-xargs"

_ALPHABET = string.ascii_lowercase + string.digits


def random_suffix(length: int = 9) -> str:
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))


def generate_branch_name() -> str:
    """Unique default branch name that will not collide with operator branches."""
    return f"{DEFAULT_BRANCH_PREFIX}-{random_suffix()}"


class RunConfiguration(BaseModel):
    """Options for one run, shared read-only by every pipeline."""

    model_config = ConfigDict(frozen=True)

    command: tuple[str, ...] = Field(..., min_length=1, description="Command argv to run")
    max_concurrent_repos: int = Field(0, ge=0, description="0 means unbounded")

    branch_name: str = Field("", description="Empty generates a unique name")
    base_branch_name: str = Field("", description="Empty uses the repository default")
    clone_branch: str = Field("", description="Source branch to clone from")
    clone_depth: int = Field(1, ge=0, description="0 clones full history")

    commit_message: str = DEFAULT_COMMIT_MESSAGE
    pull_request_title: str = DEFAULT_PULL_REQUEST_TITLE
    pull_request_description: str = DEFAULT_PULL_REQUEST_DESCRIPTION

    dry_run: bool = False
    skip_pull_requests: bool = False
    skip_archived_repos: bool = False
    draft: bool = False

    reviewers: tuple[str, ...] = ()
    team_reviewers: tuple[str, ...] = ()
    assignees: tuple[str, ...] = ()

    command_timeout_seconds: float | None = Field(None, gt=0)

    @field_validator("command", mode="before")
    @classmethod
    def _split_command(cls, value: object) -> object:
        if isinstance(value, str):
            return tuple(shlex.split(value))
        return value

    @field_validator("commit_message", "pull_request_title", mode="before")
    @classmethod
    def _default_if_blank(cls, value: object, info: ValidationInfo) -> object:
        if isinstance(value, str) and not value.strip():
            return {
                "commit_message": DEFAULT_COMMIT_MESSAGE,
                "pull_request_title": DEFAULT_PULL_REQUEST_TITLE,
            }[info.field_name]
        return value

    @classmethod
    def from_settings(cls, settings: Settings, **overrides: object) -> "RunConfiguration":
        """Seed run defaults from application settings."""
        values: dict[str, object] = {
            "max_concurrent_repos": settings.max_concurrent_repos,
            "clone_depth": settings.clone_depth,
            "command_timeout_seconds": settings.command_timeout_seconds,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def with_resolved_branch(self) -> "RunConfiguration":
        """Return a copy whose branch name is fixed for the whole run."""
        if self.branch_name:
            return self
        return self.model_copy(update={"branch_name": generate_branch_name()})

    def base_branch_for(self, default_branch: str) -> str:
        return self.base_branch_name or default_branch

    def clone_branch_for(self, default_branch: str) -> str:
        return self.clone_branch or default_branch
