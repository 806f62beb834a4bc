"""Local version-control capability and its implementations."""

from repo_xargs.vcs.base import GitBackend, Worktree, WorktreeStatus
from repo_xargs.vcs.errors import GitCommandError
from repo_xargs.vcs.git_cli import GitCliBackend, GitRepository
from repo_xargs.vcs.memory import InMemoryGitBackend, MemoryRepository

__all__ = [
    "GitBackend",
    "GitCliBackend",
    "GitCommandError",
    "GitRepository",
    "InMemoryGitBackend",
    "MemoryRepository",
    "Worktree",
    "WorktreeStatus",
]
