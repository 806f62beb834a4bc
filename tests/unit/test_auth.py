import pytest
from repo_xargs.auth import AuthError, configure_host, ensure_token_set
from repo_xargs.config import Settings


@pytest.fixture(autouse=True)
def _clean_github_env(monkeypatch) -> None:
    for name in (
        "GITHUB_OAUTH_TOKEN",
        "GITHUB_ENTERPRISE_HOST",
        "GITHUB_ENTERPRISE_OAUTH_TOKEN",
        "GITHUB_API_BASE_URL",
    ):
        monkeypatch.delenv(name, raising=False)


def test_public_github_requires_oauth_token() -> None:
    with pytest.raises(AuthError, match="GITHUB_OAUTH_TOKEN"):
        ensure_token_set(Settings(github_oauth_token=""))


def test_internal_requires_enterprise_host() -> None:
    settings = Settings(github_oauth_token="tok", github_enterprise_oauth_token="ent")

    with pytest.raises(AuthError, match="GITHUB_ENTERPRISE_HOST"):
        ensure_token_set(settings, internal=True)


def test_internal_requires_enterprise_token() -> None:
    settings = Settings(github_enterprise_host="git.corp.test")

    with pytest.raises(AuthError, match="GITHUB_ENTERPRISE_OAUTH_TOKEN"):
        ensure_token_set(settings, internal=True)


def test_settings_read_token_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("GITHUB_OAUTH_TOKEN", "from-env")

    host = configure_host(Settings())
    try:
        assert host.token == "from-env"
        assert host.base_url == "https://api.github.com"
        assert host.host == "github.com"
    finally:
        host.close()


def test_enterprise_host_uses_api_v3_base_url() -> None:
    settings = Settings(
        github_enterprise_host="https://git.corp.test/",
        github_enterprise_oauth_token="ent-token",
    )

    host = configure_host(settings, internal=True)
    try:
        assert host.base_url == "https://git.corp.test/api/v3"
        assert host.host == "git.corp.test"
        assert host.token == "ent-token"
    finally:
        host.close()
