"""Git backend that shells out to the ``git`` executable."""

import base64
import logging
import os
import subprocess
from dataclasses import dataclass
from pathlib import Path

from repo_xargs.vcs.base import GitBackend, Worktree, WorktreeStatus
from repo_xargs.vcs.errors import GitCommandError, redact

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GitRepository:
    """A clone on disk."""

    path: Path


class GitCliBackend(GitBackend):
    """
    Runs git commands in subprocesses.

    Operations:
    - Shallow clone at a branch
    - Create, check out and pull branches
    - Stage, commit and push changes

    The access token travels as an HTTP header set through git's environment
    configuration, so it never lands in a clone's ``.git/config`` or in argv.
    """

    def __init__(
        self,
        author_name: str | None = None,
        author_email: str | None = None,
        git_executable: str = "git",
        auth_token: str | None = None,
    ):
        """
        Initialize the backend.

        Args:
            author_name: Commit author/committer name, falls back to git config
            author_email: Commit author/committer email, falls back to git config
            git_executable: Path to the git binary
            auth_token: Token for HTTPS remotes, sent as basic auth
        """
        self.author_name = author_name
        self.author_email = author_email
        self.git_executable = git_executable
        self._auth_header: str | None = None
        if auth_token:
            credentials = base64.b64encode(f"x-access-token:{auth_token}".encode()).decode()
            self._auth_header = f"Authorization: Basic {credentials}"

    def _env(self) -> dict[str, str]:
        env = {**os.environ, "GIT_TERMINAL_PROMPT": "0"}
        if self.author_name:
            env["GIT_AUTHOR_NAME"] = self.author_name
            env["GIT_COMMITTER_NAME"] = self.author_name
        if self.author_email:
            env["GIT_AUTHOR_EMAIL"] = self.author_email
            env["GIT_COMMITTER_EMAIL"] = self.author_email
        if self._auth_header:
            # Appended after any GIT_CONFIG_* entries the caller already exports
            index = int(env.get("GIT_CONFIG_COUNT") or 0)
            env[f"GIT_CONFIG_KEY_{index}"] = "http.extraHeader"
            env[f"GIT_CONFIG_VALUE_{index}"] = self._auth_header
            env["GIT_CONFIG_COUNT"] = str(index + 1)
        return env

    def _git(self, args: list[str], cwd: Path | None = None) -> str:
        logger.debug("Running git", extra={"git_args": [redact(a) for a in args]})
        try:
            # surrogateescape round-trips paths that are not valid UTF-8
            result = subprocess.run(
                [self.git_executable, *args],
                cwd=cwd,
                capture_output=True,
                encoding="utf-8",
                errors="surrogateescape",
                env=self._env(),
            )
        except OSError as e:
            raise GitCommandError(args, None, str(e)) from e

        if result.returncode != 0:
            raise GitCommandError(args, result.returncode, result.stderr or result.stdout)
        return result.stdout

    def clone(
        self, url: str, directory: Path, depth: int = 1, branch: str | None = None
    ) -> GitRepository:
        args = ["clone"]
        if depth > 0:
            args.extend(["--depth", str(depth)])
        if branch:
            args.extend(["--branch", branch])
        args.extend([url, str(directory)])
        self._git(args)
        return GitRepository(path=Path(directory))

    def head(self, repository: GitRepository) -> str:
        return self._git(["rev-parse", "--verify", "HEAD"], cwd=repository.path).strip()

    def worktree(self, repository: GitRepository) -> Worktree:
        inside = self._git(["rev-parse", "--is-inside-work-tree"], cwd=repository.path).strip()
        if inside != "true":
            raise GitCommandError(["rev-parse", "--is-inside-work-tree"], 0, "not a work tree")
        return Worktree(path=repository.path, repository=repository)

    def create_branch(self, repository: GitRepository, name: str, from_ref: str) -> None:
        self._git(["branch", name, from_ref], cwd=repository.path)

    def checkout(self, worktree: Worktree, name: str) -> None:
        self._git(["checkout", name], cwd=worktree.path)

    def remote_branch_exists(
        self, repository: GitRepository, name: str, remote: str = "origin"
    ) -> bool:
        out = self._git(["ls-remote", "--heads", remote, name], cwd=repository.path)
        return any(line.endswith(f"refs/heads/{name}") for line in out.splitlines())

    def pull(self, worktree: Worktree, name: str, remote: str = "origin") -> None:
        self._git(["pull", "--ff-only", remote, name], cwd=worktree.path)

    def status(self, worktree: Worktree) -> WorktreeStatus:
        out = self._git(
            ["status", "--porcelain=v1", "-z", "--untracked-files=all"],
            cwd=worktree.path,
        )
        status = WorktreeStatus()
        entries = iter(out.split("\0"))
        for entry in entries:
            if not entry:
                continue
            code, path = entry[:2], entry[3:]
            if code[0] in "RC":
                # Renames and copies are followed by the original path
                next(entries, None)
            if code == "??":
                status.untracked.append(path)
            elif "D" in code:
                status.deleted.append(path)
            else:
                status.modified.append(path)
        return status

    def add(self, worktree: Worktree, paths: list[str]) -> None:
        if not paths:
            return
        self._git(["add", "--all", "--", *paths], cwd=worktree.path)

    def staged_paths(self, worktree: Worktree) -> list[str]:
        out = self._git(["diff", "--cached", "--name-only", "-z"], cwd=worktree.path)
        return [path for path in out.split("\0") if path]

    def commit(self, worktree: Worktree, message: str) -> str:
        self._git(["commit", "--message", message], cwd=worktree.path)
        return self._git(["rev-parse", "HEAD"], cwd=worktree.path).strip()

    def push(self, repository: GitRepository, branch: str, remote: str = "origin") -> None:
        self._git(["push", "--set-upstream", remote, branch], cwd=repository.path)
