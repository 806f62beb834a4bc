from pathlib import Path

import pytest
from repo_xargs.hosts.memory import InMemoryHost
from repo_xargs.schemas.repository import RemoteRepositoryRef
from repo_xargs.selection import (
    InvalidRepositoryNameError,
    NoRepositorySourceError,
    parse_repository_names,
    select_repositories,
)


@pytest.fixture
def known_host() -> InMemoryHost:
    return InMemoryHost(
        repositories=[
            RemoteRepositoryRef(owner="acme", name=name) for name in ("api", "web", "docs")
        ]
        + [RemoteRepositoryRef(owner="other", name="tool")]
    )


def test_parse_skips_comments_quotes_and_git_suffix() -> None:
    lines = [
        "# repositories to update",
        "acme/api",
        "  'acme/web'  ",
        '"other/tool.git"',
        "",
        "acme/docs  # trailing comment",
    ]

    assert parse_repository_names(lines) == [
        ("acme", "api"),
        ("acme", "web"),
        ("other", "tool"),
        ("acme", "docs"),
    ]


@pytest.mark.parametrize("bad", ["just-a-name", "acme/api/extra", "acme/"])
def test_parse_rejects_malformed_names(bad: str) -> None:
    with pytest.raises(InvalidRepositoryNameError) as excinfo:
        parse_repository_names([bad])

    assert excinfo.value.value == bad


def test_requires_a_source(known_host) -> None:
    with pytest.raises(NoRepositorySourceError):
        select_repositories(known_host)


def test_org_listing_walks_every_page(known_host) -> None:
    result = select_repositories(known_host, org="acme")

    assert [r.name for r in result.repositories] == ["api", "docs", "web"]
    assert known_host.pages_served == 2
    assert result.missing == []


def test_explicit_names_file_and_stdin_are_combined(known_host, tmp_path: Path) -> None:
    repos_file = tmp_path / "repos.txt"
    repos_file.write_text("acme/web\n# skip me\n", encoding="utf-8")

    result = select_repositories(
        known_host,
        repos=["acme/api"],
        repos_file=repos_file,
        stdin_lines=["other/tool"],
    )

    assert [r.full_name for r in result.repositories] == ["acme/api", "other/tool", "acme/web"]


def test_unknown_repositories_are_reported_missing(known_host) -> None:
    result = select_repositories(known_host, repos=["acme/api", "acme/ghost"])

    assert [r.full_name for r in result.repositories] == ["acme/api"]
    assert result.missing == ["acme/ghost"]


def test_lookup_failures_are_reported_missing(known_host) -> None:
    known_host.fail_on["get_repository"] = {"acme/web"}

    result = select_repositories(known_host, repos=["acme/web"])

    assert result.repositories == []
    assert result.missing == ["acme/web"]
