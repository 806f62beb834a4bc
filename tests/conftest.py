"""Test configuration and fixtures."""

import threading
import time
from collections.abc import Callable, Generator, Mapping, Sequence
from pathlib import Path

import pytest
from repo_xargs.config import get_settings
from repo_xargs.hosts.memory import InMemoryHost
from repo_xargs.pipeline.commands import CommandResult, CommandRunner
from repo_xargs.schemas.repository import RemoteRepositoryRef
from repo_xargs.schemas.run import RunConfiguration
from repo_xargs.tracking.outcomes import OutcomeTracker
from repo_xargs.vcs.memory import InMemoryGitBackend

Action = str | Callable[[InMemoryGitBackend, Path], None]


class ScriptedRunner(CommandRunner):
    """Command runner that simulates the operator command per repository.

    Actions: ``"change"`` writes a file, ``"noop"`` changes nothing,
    ``"fail"`` exits 1, ``"launch_error"`` raises like a missing executable,
    or a callable receiving the git backend and clone directory.
    """

    def __init__(
        self,
        git: InMemoryGitBackend,
        actions: dict[str, Action] | None = None,
        delay: float = 0.0,
    ):
        self.git = git
        self.actions = actions or {}
        self.delay = delay
        self._lock = threading.Lock()
        self.active = 0
        self.max_active = 0
        self.invocations: list[tuple[str, Path, dict[str, str]]] = []

    def run(
        self,
        argv: Sequence[str],
        cwd: Path,
        env: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> CommandResult:
        env = dict(env or {})
        repo = f"{env['XARGS_REPO_OWNER']}/{env['XARGS_REPO_NAME']}"
        with self._lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
            self.invocations.append((repo, cwd, env))
        try:
            if self.delay:
                time.sleep(self.delay)
            action = self.actions.get(repo, "change")
            if action == "launch_error":
                raise FileNotFoundError(f"No such file or directory: {argv[0]!r}")
            if action == "fail":
                return CommandResult(
                    command=" ".join(argv),
                    exit_code=1,
                    stdout="",
                    stderr="mutation script failed",
                    duration_seconds=0.0,
                )
            if action == "change":
                self.git.write_file(cwd, "CHANGELOG.md", f"updated {repo}\n")
            elif callable(action):
                action(self.git, cwd)
            return CommandResult(
                command=" ".join(argv),
                exit_code=0,
                stdout="ok\n",
                stderr="",
                duration_seconds=0.0,
            )
        finally:
            with self._lock:
                self.active -= 1


def _make_repo(full_name: str, **kwargs) -> RemoteRepositoryRef:
    owner, name = full_name.split("/", 1)
    return RemoteRepositoryRef(owner=owner, name=name, **kwargs)


@pytest.fixture
def make_repo() -> Callable[..., RemoteRepositoryRef]:
    return _make_repo


@pytest.fixture(autouse=True)
def _clear_settings_cache() -> Generator[None, None, None]:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def git() -> InMemoryGitBackend:
    return InMemoryGitBackend()


@pytest.fixture
def host() -> InMemoryHost:
    return InMemoryHost()


@pytest.fixture
def tracker() -> OutcomeTracker:
    return OutcomeTracker()


@pytest.fixture
def runner(git: InMemoryGitBackend) -> ScriptedRunner:
    return ScriptedRunner(git)


@pytest.fixture
def config() -> RunConfiguration:
    return RunConfiguration(
        command=["./mutate.sh"],
        branch_name="repo-xargs-test",
        pull_request_title="Bump dependencies",
        pull_request_description="Automated bump",
        commit_message="chore: bump dependencies",
    )
