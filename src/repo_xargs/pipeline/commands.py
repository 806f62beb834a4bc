"""Execution of the operator-supplied command inside a clone."""

import logging
import os
import subprocess
import time
from collections.abc import Mapping, Sequence
from pathlib import Path

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class CommandResult(BaseModel):
    """Result of a command execution."""

    command: str
    exit_code: int
    stdout: str
    stderr: str
    duration_seconds: float
    timed_out: bool = False

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0 and not self.timed_out


class CommandRunner:
    """Runs a command in a subprocess and captures its output.

    Launch failures (missing executable, permission denied) propagate as
    ``OSError``. There is no timeout unless one is passed. Output that is not
    valid UTF-8 is decoded with replacement characters.
    """

    def run(
        self,
        argv: Sequence[str],
        cwd: Path,
        env: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> CommandResult:
        started = time.monotonic()
        try:
            result = subprocess.run(
                list(argv),
                cwd=cwd,
                capture_output=True,
                encoding="utf-8",
                errors="replace",
                env={**os.environ, **(env or {})},
                timeout=timeout,
            )
        except subprocess.TimeoutExpired as e:
            logger.warning(f"Command timed out after {timeout}s: {' '.join(argv)}")
            return CommandResult(
                command=" ".join(argv),
                exit_code=-1,
                stdout=_as_text(e.stdout),
                stderr=_as_text(e.stderr),
                duration_seconds=time.monotonic() - started,
                timed_out=True,
            )

        return CommandResult(
            command=" ".join(argv),
            exit_code=result.returncode,
            stdout=result.stdout,
            stderr=result.stderr,
            duration_seconds=time.monotonic() - started,
        )


def _as_text(value: str | bytes | None) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value
