"""Errors raised by local version-control backends."""

import re
from collections.abc import Sequence

_CREDENTIALS = re.compile(r"(https?://)[^/@\s]+@")


def redact(text: str) -> str:
    """Strip credentials embedded in URLs and replace undecodable bytes."""
    text = text.encode("utf-8", "surrogateescape").decode("utf-8", "replace")
    return _CREDENTIALS.sub(r"\1***@", text)


class GitCommandError(Exception):
    """A git operation failed."""

    def __init__(self, args: Sequence[str], returncode: int | None, stderr: str = ""):
        self.command = [redact(a) for a in args]
        self.returncode = returncode
        self.stderr = redact(stderr.strip())
        detail = self.stderr or f"exit {returncode}"
        super().__init__(f"git {' '.join(self.command)} failed: {detail}")
