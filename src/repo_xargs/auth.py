"""Host credentials.

A token must be exported before any repository is touched: GITHUB_OAUTH_TOKEN
for github.com, or GITHUB_ENTERPRISE_HOST plus GITHUB_ENTERPRISE_OAUTH_TOKEN
for an internal GitHub Enterprise host.
"""

import logging

from repo_xargs.config import Settings
from repo_xargs.hosts.github import GitHubHost

logger = logging.getLogger(__name__)


class AuthError(Exception):
    """Required credentials are missing from the environment."""

    pass


def ensure_token_set(settings: Settings, internal: bool = False) -> None:
    """Fail fast when the environment lacks the credentials for the chosen host."""
    if internal:
        if not settings.github_enterprise_host:
            raise AuthError(
                "--internal requires the GITHUB_ENTERPRISE_HOST environment variable"
            )
        if not settings.github_enterprise_oauth_token:
            raise AuthError(
                "--internal requires the GITHUB_ENTERPRISE_OAUTH_TOKEN environment variable"
            )
        return

    if not settings.github_oauth_token:
        raise AuthError("You must export a valid GITHUB_OAUTH_TOKEN")


def configure_host(settings: Settings, internal: bool = False) -> GitHubHost:
    """Create the GitHub client for github.com or an Enterprise host."""
    ensure_token_set(settings, internal)

    if internal:
        host = settings.github_enterprise_host.strip().rstrip("/")
        host = host.removeprefix("https://").removeprefix("http://")
        logger.debug(f"Using GitHub Enterprise host {host}")
        return GitHubHost(
            token=settings.github_enterprise_oauth_token,
            base_url=f"https://{host}/api/v3",
            host=host,
            timeout=settings.http_timeout_seconds,
        )

    return GitHubHost(
        token=settings.github_oauth_token,
        base_url=settings.github_api_base_url,
        host="github.com",
        timeout=settings.http_timeout_seconds,
    )
