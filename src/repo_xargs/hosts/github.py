"""GitHub API client implementing the remote host capability.

Uses GitHub REST API v3 to:
- Fetch repositories and list organization repositories
- Open and list pull requests
- Request reviewers and add assignees

Reference: https://docs.github.com/en/rest
"""

import logging
from typing import Any

import httpx

from repo_xargs.hosts.base import RemoteHost
from repo_xargs.hosts.errors import HostAPIError, HostNotFoundError, HostRateLimitError
from repo_xargs.schemas.pull_request import NewPullRequest, PullRequest, ReviewRequest
from repo_xargs.schemas.repository import RemoteRepositoryRef

logger = logging.getLogger(__name__)

PER_PAGE = 100


class GitHubHost(RemoteHost):
    """
    Synchronous GitHub API client.

    One instance is shared by every pipeline thread; ``httpx.Client`` is
    safe to use concurrently.
    """

    def __init__(
        self,
        token: str,
        base_url: str = "https://api.github.com",
        host: str = "github.com",
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        """
        Initialize GitHub client.

        Args:
            token: OAuth or personal access token
            base_url: API base URL (``https://<host>/api/v3`` for Enterprise)
            host: Web host used to build clone URLs
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport, used by tests
        """
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.host = host
        self._client = httpx.Client(
            base_url=self.base_url,
            headers=self._build_headers(),
            timeout=httpx.Timeout(timeout, connect=10.0),
            transport=transport,
        )

    def __enter__(self) -> "GitHubHost":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def _build_headers(self) -> dict[str, str]:
        """Build request headers with authentication."""
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """
        Make an API request with error handling.

        Raises:
            HostRateLimitError: If rate limit exceeded
            HostNotFoundError: If resource not found
            HostAPIError: For transport failures and other API errors
        """
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise HostAPIError(f"GitHub API request failed: {method} {path}: {e}") from e

        if response.status_code == 403:
            remaining = response.headers.get("X-RateLimit-Remaining", "")
            if remaining == "0":
                reset_time = response.headers.get("X-RateLimit-Reset", "unknown")
                raise HostRateLimitError(
                    f"GitHub API rate limit exceeded. Resets at {reset_time}",
                    status_code=403,
                )

        if response.status_code == 404:
            raise HostNotFoundError(f"Resource not found: {path}", status_code=404)

        if response.status_code >= 400:
            raise HostAPIError(
                f"GitHub API error: {response.status_code} - {response.text}",
                status_code=response.status_code,
            )

        return response

    def _paginate(self, path: str, params: dict[str, Any]) -> list[dict[str, Any]]:
        items: list[dict[str, Any]] = []
        response = self._request("GET", path, params={**params, "per_page": PER_PAGE})
        items.extend(response.json())
        while "next" in response.links:
            response = self._request("GET", response.links["next"]["url"])
            items.extend(response.json())
        return items

    def get_repository(self, owner: str, name: str) -> RemoteRepositoryRef:
        logger.debug(f"Fetching repository {owner}/{name}")
        response = self._request("GET", f"/repos/{owner}/{name}")
        return RemoteRepositoryRef.from_api(response.json())

    def list_org_repositories(self, org: str) -> list[RemoteRepositoryRef]:
        logger.debug(f"Listing repositories of {org}")
        data = self._paginate(f"/orgs/{org}/repos", {"type": "all"})
        repos = [RemoteRepositoryRef.from_api(item) for item in data]
        logger.info(f"Found {len(repos)} repositories in {org}")
        return repos

    def create_pull_request(self, repo: RemoteRepositoryRef, pr: NewPullRequest) -> PullRequest:
        response = self._request(
            "POST",
            f"/repos/{repo.full_name}/pulls",
            json=pr.model_dump(),
        )
        return PullRequest.from_api(response.json())

    def list_pull_requests(
        self,
        repo: RemoteRepositoryRef,
        head: str,
        base: str,
        state: str = "open",
    ) -> list[PullRequest]:
        # The API expects head as "owner:branch"
        qualified_head = head if ":" in head else f"{repo.owner}:{head}"
        data = self._paginate(
            f"/repos/{repo.full_name}/pulls",
            {"head": qualified_head, "base": base, "state": state},
        )
        return [PullRequest.from_api(item) for item in data]

    def request_reviewers(
        self,
        repo: RemoteRepositoryRef,
        number: int,
        request: ReviewRequest,
    ) -> None:
        self._request(
            "POST",
            f"/repos/{repo.full_name}/pulls/{number}/requested_reviewers",
            json=request.model_dump(),
        )

    def add_assignees(self, repo: RemoteRepositoryRef, number: int, assignees: list[str]) -> None:
        self._request(
            "POST",
            f"/repos/{repo.full_name}/issues/{number}/assignees",
            json={"assignees": assignees},
        )

    def clone_url(self, repo: RemoteRepositoryRef) -> str:
        """HTTPS clone URL without credentials; the git backend supplies the token."""
        return repo.clone_url or f"https://{self.host}/{repo.full_name}.git"
