"""Turn operator input into the list of repositories to process.

Repositories can come from a GitHub organization, explicit ``owner/name``
arguments, a file with one repository per line, or lines read from stdin.
"""

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from repo_xargs.hosts.base import RemoteHost
from repo_xargs.hosts.errors import HostAPIError, HostNotFoundError
from repo_xargs.schemas.repository import RemoteRepositoryRef

logger = logging.getLogger(__name__)

_REPO_NAME = re.compile(r"^[A-Za-z0-9_.-]+/[A-Za-z0-9_.-]+$")


class NoRepositorySourceError(Exception):
    """No organization, repository list or file was given."""

    pass


class InvalidRepositoryNameError(ValueError):
    """A line could not be parsed as ``owner/name``."""

    def __init__(self, value: str):
        super().__init__(f"Invalid repository name {value!r}, expected owner/name")
        self.value = value


@dataclass
class SelectionResult:
    repositories: list[RemoteRepositoryRef] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)


def parse_repository_names(lines: Iterable[str]) -> list[tuple[str, str]]:
    """Parse ``owner/name`` entries, skipping blanks and ``#`` comments."""
    parsed: list[tuple[str, str]] = []
    for raw in lines:
        line = raw.split("#", 1)[0].strip().strip("\"'")
        if not line:
            continue
        if line.endswith(".git"):
            line = line[: -len(".git")]
        if not _REPO_NAME.match(line):
            raise InvalidRepositoryNameError(raw.strip())
        owner, name = line.split("/", 1)
        parsed.append((owner, name))
    return parsed


def select_repositories(
    host: RemoteHost,
    org: str | None = None,
    repos: Iterable[str] = (),
    repos_file: Path | None = None,
    stdin_lines: Iterable[str] = (),
) -> SelectionResult:
    """Resolve every requested repository through the host.

    Repositories the host does not know are reported in ``missing`` instead
    of aborting the selection.
    """
    lines = [*repos, *stdin_lines]
    if repos_file is not None:
        lines.extend(repos_file.read_text(encoding="utf-8").splitlines())

    if not org and not lines:
        raise NoRepositorySourceError(
            "Select repositories with an organization, repository names, a file or stdin"
        )

    result = SelectionResult()
    if org:
        result.repositories.extend(host.list_org_repositories(org))

    for owner, name in parse_repository_names(lines):
        try:
            result.repositories.append(host.get_repository(owner, name))
        except HostNotFoundError:
            logger.warning(f"Repository {owner}/{name} not found, skipping")
            result.missing.append(f"{owner}/{name}")
        except HostAPIError as e:
            logger.warning(f"Could not look up {owner}/{name}: {e}")
            result.missing.append(f"{owner}/{name}")

    logger.info(f"Selected {len(result.repositories)} repositories")
    return result
