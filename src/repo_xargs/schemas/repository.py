"""Schemas for remote repositories and the per-repository pipeline result."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from repo_xargs.schemas.outcome import Outcome


class RemoteRepositoryRef(BaseModel):
    """A repository as known to the remote host."""

    model_config = ConfigDict(frozen=True)

    owner: str = Field(..., description="Owning user or organization login")
    name: str = Field(..., description="Repository name")
    default_branch: str = Field("main", description="Default branch on the host")
    archived: bool = Field(False, description="Whether the repository is archived")
    clone_url: str = Field("", description="HTTPS clone URL")

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "RemoteRepositoryRef":
        """Build a ref from a GitHub REST repository payload."""
        return cls(
            owner=data["owner"]["login"],
            name=data["name"],
            default_branch=data.get("default_branch") or "main",
            archived=bool(data.get("archived", False)),
            clone_url=data.get("clone_url") or "",
        )


class PipelineState(str, Enum):
    """States of the per-repository pipeline, in execution order."""

    INIT = "init"
    CLONED = "cloned"
    HEAD_RESOLVED = "head_resolved"
    WORKTREE_READY = "worktree_ready"
    BRANCH_READY = "branch_ready"
    COMMAND_EXECUTED = "command_executed"
    CHANGES_STAGED = "changes_staged"
    COMMITTED = "committed"
    PUSHED = "pushed"
    PULL_REQUEST_OPENED = "pull_request_opened"
    DONE = "done"

    @property
    def order(self) -> int:
        return list(PipelineState).index(self)

    def reached(self, other: "PipelineState") -> bool:
        """True if this state is at or past ``other``."""
        return self.order >= other.order


@dataclass
class LocalRepositoryHandle:
    """An on-disk clone owned by exactly one pipeline invocation."""

    path: Path
    repository: Any
    head: str | None = None


@dataclass
class PipelineResult:
    """Everything one pipeline invocation produced for a single repository.

    Holds a reference to the remote repository and, once the clone
    succeeded, to the local one. Returned to the orchestrator even when a
    later step failed so operators can inspect the working directory.
    """

    remote: RemoteRepositoryRef
    local: LocalRepositoryHandle | None = None
    directory: Path | None = None
    branch: str | None = None
    state: PipelineState = PipelineState.INIT
    outcome: Outcome | None = None
    pull_request_url: str | None = None

    @property
    def cloned(self) -> bool:
        return self.local is not None and self.state.reached(PipelineState.CLONED)
