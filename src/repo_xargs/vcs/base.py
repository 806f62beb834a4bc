"""Local version-control capability.

The pipeline drives clones only through ``GitBackend``. The backend decides
what a local repository object is; callers treat it as opaque.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


@dataclass
class Worktree:
    """Mutable view of a checkout."""

    path: Path
    repository: Any


@dataclass
class WorktreeStatus:
    """Paths that differ between the worktree and HEAD."""

    modified: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    untracked: list[str] = field(default_factory=list)

    @property
    def paths(self) -> list[str]:
        return [*self.modified, *self.deleted, *self.untracked]


class GitBackend(ABC):
    """Operations needed on a local clone.

    Implementations raise ``GitCommandError`` on failure.
    """

    @abstractmethod
    def clone(self, url: str, directory: Path, depth: int = 1, branch: str | None = None) -> Any:
        """Clone ``url`` into the existing empty ``directory``; depth 0 means full history."""

    @abstractmethod
    def head(self, repository: Any) -> str:
        """Resolve HEAD to a commit id."""

    @abstractmethod
    def worktree(self, repository: Any) -> Worktree:
        """Obtain the worktree of a repository."""

    @abstractmethod
    def create_branch(self, repository: Any, name: str, from_ref: str) -> None:
        """Create a local branch pointing at ``from_ref``."""

    @abstractmethod
    def checkout(self, worktree: Worktree, name: str) -> None:
        """Check out an existing local branch."""

    @abstractmethod
    def remote_branch_exists(self, repository: Any, name: str, remote: str = "origin") -> bool:
        """Whether ``remote`` already has a branch called ``name``."""

    @abstractmethod
    def pull(self, worktree: Worktree, name: str, remote: str = "origin") -> None:
        """Fast-forward the current branch to ``remote/name``."""

    @abstractmethod
    def status(self, worktree: Worktree) -> WorktreeStatus:
        """Report modified, deleted and untracked paths."""

    @abstractmethod
    def add(self, worktree: Worktree, paths: list[str]) -> None:
        """Stage the given paths, including deletions."""

    @abstractmethod
    def staged_paths(self, worktree: Worktree) -> list[str]:
        """Paths currently staged for commit."""

    @abstractmethod
    def commit(self, worktree: Worktree, message: str) -> str:
        """Commit the stage and return the new commit id."""

    @abstractmethod
    def push(self, repository: Any, branch: str, remote: str = "origin") -> None:
        """Push ``branch`` to ``remote``."""
