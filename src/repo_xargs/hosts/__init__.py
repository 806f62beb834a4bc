"""Remote host capability and its implementations."""

from repo_xargs.hosts.base import RemoteHost
from repo_xargs.hosts.errors import HostAPIError, HostNotFoundError, HostRateLimitError
from repo_xargs.hosts.github import GitHubHost
from repo_xargs.hosts.memory import InMemoryHost

__all__ = [
    "GitHubHost",
    "HostAPIError",
    "HostNotFoundError",
    "HostRateLimitError",
    "InMemoryHost",
    "RemoteHost",
]
