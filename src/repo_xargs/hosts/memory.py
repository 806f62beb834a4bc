"""In-memory remote host for tests and offline runs.

Deterministic and free of I/O. Every call is recorded, and any operation
can be scripted to fail for a given repository.
"""

import threading
from collections.abc import Iterable

from repo_xargs.hosts.base import RemoteHost
from repo_xargs.hosts.errors import HostAPIError, HostNotFoundError
from repo_xargs.schemas.pull_request import NewPullRequest, PullRequest, ReviewRequest
from repo_xargs.schemas.repository import RemoteRepositoryRef


class InMemoryHost(RemoteHost):
    """Remote host backed by plain dictionaries.

    ``fail_on`` maps an operation name (``create_pull_request``,
    ``request_reviewers``...) to the set of repository full names for which
    it should raise ``HostAPIError``.
    """

    def __init__(
        self,
        repositories: Iterable[RemoteRepositoryRef] = (),
        fail_on: dict[str, set[str]] | None = None,
        page_size: int = 2,
    ):
        self._lock = threading.Lock()
        self.repositories = {repo.full_name: repo for repo in repositories}
        self.pull_requests: dict[str, list[PullRequest]] = {}
        self.reviewer_requests: list[tuple[str, int, ReviewRequest]] = []
        self.assignments: list[tuple[str, int, list[str]]] = []
        self.calls: list[tuple[str, str]] = []
        self.fail_on = fail_on or {}
        self.page_size = page_size
        self.pages_served = 0
        self._next_number = 1

    def _call(self, operation: str, full_name: str) -> None:
        with self._lock:
            self.calls.append((operation, full_name))
        if full_name in self.fail_on.get(operation, set()):
            raise HostAPIError(f"{operation} failed for {full_name}", status_code=500)

    def open_pull_request(self, repo: RemoteRepositoryRef, head: str, base: str) -> PullRequest:
        """Seed an already open pull request."""
        request = NewPullRequest(title="existing", head=head, base=base)
        return self.create_pull_request(repo, request)

    def get_repository(self, owner: str, name: str) -> RemoteRepositoryRef:
        full_name = f"{owner}/{name}"
        self._call("get_repository", full_name)
        try:
            return self.repositories[full_name]
        except KeyError:
            raise HostNotFoundError(f"Resource not found: {full_name}", status_code=404) from None

    def list_org_repositories(self, org: str) -> list[RemoteRepositoryRef]:
        self._call("list_org_repositories", org)
        matching = sorted(
            (repo for repo in self.repositories.values() if repo.owner == org),
            key=lambda repo: repo.name,
        )
        if not matching:
            raise HostNotFoundError(f"Resource not found: /orgs/{org}/repos", status_code=404)
        result: list[RemoteRepositoryRef] = []
        for start in range(0, len(matching), self.page_size):
            self.pages_served += 1
            result.extend(matching[start : start + self.page_size])
        return result

    def create_pull_request(self, repo: RemoteRepositoryRef, pr: NewPullRequest) -> PullRequest:
        self._call("create_pull_request", repo.full_name)
        with self._lock:
            number = self._next_number
            self._next_number += 1
            created = PullRequest(
                number=number,
                html_url=f"https://github.com/{repo.full_name}/pull/{number}",
                head=pr.head,
                base=pr.base,
                draft=pr.draft,
            )
            self.pull_requests.setdefault(repo.full_name, []).append(created)
        return created

    def list_pull_requests(
        self,
        repo: RemoteRepositoryRef,
        head: str,
        base: str,
        state: str = "open",
    ) -> list[PullRequest]:
        self._call("list_pull_requests", repo.full_name)
        branch = head.split(":", 1)[-1]
        with self._lock:
            return [
                pr
                for pr in self.pull_requests.get(repo.full_name, [])
                if pr.head == branch and pr.base == base and pr.state == state
            ]

    def request_reviewers(
        self,
        repo: RemoteRepositoryRef,
        number: int,
        request: ReviewRequest,
    ) -> None:
        self._call("request_reviewers", repo.full_name)
        with self._lock:
            self.reviewer_requests.append((repo.full_name, number, request))

    def add_assignees(self, repo: RemoteRepositoryRef, number: int, assignees: list[str]) -> None:
        self._call("add_assignees", repo.full_name)
        with self._lock:
            self.assignments.append((repo.full_name, number, list(assignees)))

    def clone_url(self, repo: RemoteRepositoryRef) -> str:
        return repo.clone_url or f"memory://{repo.full_name}"

    def created_for(self, full_name: str) -> list[PullRequest]:
        with self._lock:
            return list(self.pull_requests.get(full_name, []))
