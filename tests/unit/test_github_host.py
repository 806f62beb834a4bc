"""Tests for the GitHub REST client against a mocked transport."""

import json

import httpx
import pytest
from repo_xargs.hosts.errors import HostAPIError, HostNotFoundError, HostRateLimitError
from repo_xargs.hosts.github import GitHubHost
from repo_xargs.schemas.pull_request import NewPullRequest, ReviewRequest
from repo_xargs.schemas.repository import RemoteRepositoryRef

API = "https://api.github.test"


def _repo_payload(owner: str, name: str, **extra) -> dict:
    return {
        "name": name,
        "owner": {"login": owner},
        "default_branch": extra.get("default_branch", "main"),
        "archived": extra.get("archived", False),
        "clone_url": f"https://github.com/{owner}/{name}.git",
    }


def _pr_payload(number: int, head: str, base: str = "main") -> dict:
    return {
        "number": number,
        "html_url": f"https://github.com/acme/app/pull/{number}",
        "head": {"ref": head},
        "base": {"ref": base},
        "state": "open",
        "draft": False,
    }


def _host(handler) -> GitHubHost:
    return GitHubHost(
        token="ghp_secret",
        base_url=API,
        transport=httpx.MockTransport(handler),
    )


@pytest.fixture
def repo() -> RemoteRepositoryRef:
    return RemoteRepositoryRef(owner="acme", name="app")


def test_get_repository_sends_auth_and_parses_payload() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=_repo_payload("acme", "app", default_branch="trunk"))

    with _host(handler) as host:
        repo = host.get_repository("acme", "app")

    assert repo.full_name == "acme/app"
    assert repo.default_branch == "trunk"
    assert seen[0].url.path == "/repos/acme/app"
    assert seen[0].headers["Authorization"] == "Bearer ghp_secret"
    assert seen[0].headers["Accept"] == "application/vnd.github+json"


def test_list_org_repositories_follows_pagination() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.params.get("page") == "2":
            return httpx.Response(200, json=[_repo_payload("acme", "c", archived=True)])
        assert request.url.params["per_page"] == "100"
        next_link = f'<{API}/orgs/acme/repos?page=2&per_page=100>; rel="next"'
        return httpx.Response(
            200,
            json=[_repo_payload("acme", "a"), _repo_payload("acme", "b")],
            headers={"Link": next_link},
        )

    with _host(handler) as host:
        repos = host.list_org_repositories("acme")

    assert [r.name for r in repos] == ["a", "b", "c"]
    assert repos[2].archived


def test_list_pull_requests_qualifies_head_with_owner(repo) -> None:
    captured: dict[str, str] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured.update(request.url.params)
        return httpx.Response(200, json=[_pr_payload(7, "fix-branch")])

    with _host(handler) as host:
        prs = host.list_pull_requests(repo, head="fix-branch", base="main")

    assert captured["head"] == "acme:fix-branch"
    assert captured["base"] == "main"
    assert captured["state"] == "open"
    assert [pr.number for pr in prs] == [7]


def test_create_pull_request_posts_payload(repo) -> None:
    bodies: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "POST"
        assert request.url.path == "/repos/acme/app/pulls"
        bodies.append(json.loads(request.content))
        return httpx.Response(201, json=_pr_payload(12, "fix-branch"))

    with _host(handler) as host:
        pr = host.create_pull_request(
            repo,
            NewPullRequest(title="Fix", body="Body", head="fix-branch", base="main", draft=True),
        )

    assert pr.number == 12
    assert pr.html_url.endswith("/pull/12")
    assert bodies == [
        {"title": "Fix", "body": "Body", "head": "fix-branch", "base": "main", "draft": True}
    ]


def test_reviewers_and_assignees_endpoints(repo) -> None:
    calls: list[tuple[str, dict]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append((request.url.path, json.loads(request.content)))
        return httpx.Response(201, json={})

    with _host(handler) as host:
        host.request_reviewers(repo, 3, ReviewRequest(reviewers=["alice"]))
        host.add_assignees(repo, 3, ["bob"])

    assert calls == [
        (
            "/repos/acme/app/pulls/3/requested_reviewers",
            {"reviewers": ["alice"], "team_reviewers": []},
        ),
        ("/repos/acme/app/issues/3/assignees", {"assignees": ["bob"]}),
    ]


def test_not_found_maps_to_host_not_found() -> None:
    with _host(lambda request: httpx.Response(404, json={"message": "Not Found"})) as host:
        with pytest.raises(HostNotFoundError) as excinfo:
            host.get_repository("acme", "missing")

    assert excinfo.value.status_code == 404


def test_exhausted_rate_limit_is_distinguished() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            403,
            json={"message": "API rate limit exceeded"},
            headers={"X-RateLimit-Remaining": "0", "X-RateLimit-Reset": "1700000000"},
        )

    with _host(handler) as host:
        with pytest.raises(HostRateLimitError, match="1700000000"):
            host.get_repository("acme", "app")


def test_other_errors_map_to_host_api_error(repo) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(422, json={"message": "Validation Failed"})

    with _host(handler) as host:
        with pytest.raises(HostAPIError) as excinfo:
            host.create_pull_request(repo, NewPullRequest(title="t", head="h", base="main"))

    assert excinfo.value.status_code == 422
    assert not isinstance(excinfo.value, HostNotFoundError)


def test_transport_errors_are_wrapped() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with _host(handler) as host:
        with pytest.raises(HostAPIError, match="request failed"):
            host.get_repository("acme", "app")


def test_clone_url_carries_no_credentials(repo) -> None:
    with _host(lambda request: httpx.Response(200)) as host:
        url = host.clone_url(repo)

    assert url == "https://github.com/acme/app.git"
    assert "ghp_secret" not in url


def test_clone_url_without_token_is_plain() -> None:
    host = GitHubHost(token="", base_url=API, host="git.internal.test")
    try:
        url = host.clone_url(RemoteRepositoryRef(owner="acme", name="app"))
    finally:
        host.close()

    assert url == "https://git.internal.test/acme/app.git"
