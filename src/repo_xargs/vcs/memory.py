"""In-memory git backend for tests and offline runs.

Repositories live in dictionaries keyed by clone directory. File changes
that a real command would make on disk are simulated with ``write_file`` and
``delete_file``.
"""

import hashlib
import threading
from dataclasses import dataclass, field
from pathlib import Path

from repo_xargs.vcs.base import GitBackend, Worktree, WorktreeStatus
from repo_xargs.vcs.errors import GitCommandError

DEFAULT_FILES = {"README.md": "# repository\n"}


@dataclass
class MemoryRepository:
    """State of one simulated clone."""

    name: str
    path: Path
    files: dict[str, str]
    worktree_files: dict[str, str]
    commits: list[str] = field(default_factory=list)
    branches: dict[str, str] = field(default_factory=dict)
    current_branch: str = "main"
    staged: dict[str, str | None] = field(default_factory=dict)
    pushed: dict[str, str] = field(default_factory=dict)
    pulled: list[str] = field(default_factory=list)
    depth: int = 1

    @property
    def head(self) -> str | None:
        return self.branches.get(self.current_branch)


def _name_from_url(url: str) -> str:
    """``memory://owner/name`` or ``https://[creds@]host/owner/name.git`` to ``owner/name``."""
    scheme, _, rest = url.partition("://")
    rest = rest.rsplit("@", 1)[-1].removesuffix(".git")
    return rest if scheme == "memory" else rest.split("/", 1)[-1]


class InMemoryGitBackend(GitBackend):
    """Git backend backed by plain dictionaries.

    ``fail_on`` maps an operation name (``clone``, ``push``...) to the set of
    repository names (``owner/name``) for which it should raise.
    ``empty`` lists repositories that clone without any commits.
    ``remote_branches`` maps a repository name to branches that already exist
    on its remote.
    """

    def __init__(
        self,
        fail_on: dict[str, set[str]] | None = None,
        empty: set[str] | None = None,
        remote_branches: dict[str, set[str]] | None = None,
        files: dict[str, str] | None = None,
    ):
        self._lock = threading.Lock()
        self.fail_on = fail_on or {}
        self.empty = empty or set()
        self.remote_branches = remote_branches or {}
        self.seed_files = dict(files or DEFAULT_FILES)
        self.repositories: dict[Path, MemoryRepository] = {}
        self.calls: list[tuple[str, str]] = []

    def _call(self, operation: str, name: str, args: list[str] | None = None) -> None:
        with self._lock:
            self.calls.append((operation, name))
        if name in self.fail_on.get(operation, set()):
            raise GitCommandError([operation, *(args or [])], 128, f"simulated {operation} failure")

    def calls_for(self, name: str) -> list[str]:
        with self._lock:
            return [operation for operation, repo in self.calls if repo == name]

    def repository_at(self, directory: Path) -> MemoryRepository:
        return self.repositories[Path(directory)]

    def write_file(self, directory: Path, path: str, content: str) -> None:
        """Simulate a command writing a file in the clone."""
        self.repository_at(directory).worktree_files[path] = content

    def delete_file(self, directory: Path, path: str) -> None:
        """Simulate a command deleting a file in the clone."""
        self.repository_at(directory).worktree_files.pop(path, None)

    @staticmethod
    def _sha(*parts: str) -> str:
        return hashlib.sha1("\0".join(parts).encode()).hexdigest()

    def clone(
        self, url: str, directory: Path, depth: int = 1, branch: str | None = None
    ) -> MemoryRepository:
        name = _name_from_url(url)
        self._call("clone", name, [url])
        branch = branch or "main"
        repo = MemoryRepository(
            name=name,
            path=Path(directory),
            files={} if name in self.empty else dict(self.seed_files),
            worktree_files={} if name in self.empty else dict(self.seed_files),
            current_branch=branch,
            depth=depth,
        )
        if name not in self.empty:
            sha = self._sha(name, branch, "initial")
            repo.commits.append(sha)
            repo.branches[branch] = sha
        with self._lock:
            self.repositories[repo.path] = repo
        return repo

    def head(self, repository: MemoryRepository) -> str:
        self._call("head", repository.name)
        if repository.head is None:
            raise GitCommandError(["rev-parse", "HEAD"], 128, "ambiguous argument 'HEAD'")
        return repository.head

    def worktree(self, repository: MemoryRepository) -> Worktree:
        self._call("worktree", repository.name)
        return Worktree(path=repository.path, repository=repository)

    def create_branch(self, repository: MemoryRepository, name: str, from_ref: str) -> None:
        self._call("create_branch", repository.name, [name])
        if name in repository.branches:
            raise GitCommandError(["branch", name], 128, f"a branch named '{name}' already exists")
        repository.branches[name] = from_ref

    def checkout(self, worktree: Worktree, name: str) -> None:
        repository: MemoryRepository = worktree.repository
        self._call("checkout", repository.name, [name])
        if name not in repository.branches:
            raise GitCommandError(["checkout", name], 1, f"pathspec '{name}' did not match")
        repository.current_branch = name

    def remote_branch_exists(
        self, repository: MemoryRepository, name: str, remote: str = "origin"
    ) -> bool:
        self._call("remote_branch_exists", repository.name, [name])
        return name in self.remote_branches.get(repository.name, set())

    def pull(self, worktree: Worktree, name: str, remote: str = "origin") -> None:
        repository: MemoryRepository = worktree.repository
        self._call("pull", repository.name, [name])
        repository.pulled.append(name)

    def status(self, worktree: Worktree) -> WorktreeStatus:
        repository: MemoryRepository = worktree.repository
        self._call("status", repository.name)
        status = WorktreeStatus()
        for path, content in sorted(repository.worktree_files.items()):
            if path not in repository.files:
                status.untracked.append(path)
            elif repository.files[path] != content:
                status.modified.append(path)
        status.deleted.extend(
            sorted(path for path in repository.files if path not in repository.worktree_files)
        )
        return status

    def add(self, worktree: Worktree, paths: list[str]) -> None:
        repository: MemoryRepository = worktree.repository
        self._call("add", repository.name, paths)
        for path in paths:
            repository.staged[path] = repository.worktree_files.get(path)

    def staged_paths(self, worktree: Worktree) -> list[str]:
        repository: MemoryRepository = worktree.repository
        return sorted(
            path
            for path, content in repository.staged.items()
            if repository.files.get(path) != content
        )

    def commit(self, worktree: Worktree, message: str) -> str:
        repository: MemoryRepository = worktree.repository
        self._call("commit", repository.name, [message])
        if not self.staged_paths(worktree):
            raise GitCommandError(["commit"], 1, "nothing to commit, working tree clean")
        for path, content in repository.staged.items():
            if content is None:
                repository.files.pop(path, None)
            else:
                repository.files[path] = content
        repository.staged.clear()
        sequence = str(len(repository.commits))
        sha = self._sha(repository.name, repository.head or "", message, sequence)
        repository.commits.append(sha)
        repository.branches[repository.current_branch] = sha
        return sha

    def push(self, repository: MemoryRepository, branch: str, remote: str = "origin") -> None:
        self._call("push", repository.name, [remote, branch])
        repository.pushed[branch] = repository.branches[branch]
        with self._lock:
            self.remote_branches.setdefault(repository.name, set()).add(branch)
