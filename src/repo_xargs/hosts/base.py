"""Remote host capability.

The pipeline talks to the code host only through this interface, which lets
the production GitHub client and the in-memory double be swapped at
construction time.
"""

from abc import ABC, abstractmethod

from repo_xargs.schemas.pull_request import NewPullRequest, PullRequest, ReviewRequest
from repo_xargs.schemas.repository import RemoteRepositoryRef


class RemoteHost(ABC):
    """Operations needed against the code host.

    Implementations raise ``HostAPIError`` (or a subclass) on failure.
    """

    @abstractmethod
    def get_repository(self, owner: str, name: str) -> RemoteRepositoryRef:
        """Fetch a single repository."""

    @abstractmethod
    def list_org_repositories(self, org: str) -> list[RemoteRepositoryRef]:
        """List every repository of an organization, following pagination."""

    @abstractmethod
    def create_pull_request(self, repo: RemoteRepositoryRef, pr: NewPullRequest) -> PullRequest:
        """Open a pull request."""

    @abstractmethod
    def list_pull_requests(
        self,
        repo: RemoteRepositoryRef,
        head: str,
        base: str,
        state: str = "open",
    ) -> list[PullRequest]:
        """List pull requests filtered by head branch and base branch."""

    @abstractmethod
    def request_reviewers(
        self,
        repo: RemoteRepositoryRef,
        number: int,
        request: ReviewRequest,
    ) -> None:
        """Request reviewers on an existing pull request."""

    @abstractmethod
    def add_assignees(self, repo: RemoteRepositoryRef, number: int, assignees: list[str]) -> None:
        """Assign users to an existing pull request."""

    def clone_url(self, repo: RemoteRepositoryRef) -> str:
        """URL the local backend should clone from."""
        return repo.clone_url
