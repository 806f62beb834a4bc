"""Structured logging configuration with JSON output and run/repo context.

Uses python-json-logger for structured JSON logging. Every record emitted
from a pipeline worker carries the repository it belongs to, so interleaved
output from concurrent repositories can still be told apart.
"""

import logging
import sys
from contextvars import ContextVar
from typing import Any

from pythonjsonlogger import jsonlogger

from repo_xargs.config import get_settings

# Context variables are set per worker thread by the orchestrator
run_id_ctx: ContextVar[str | None] = ContextVar("run_id", default=None)
repo_ctx: ContextVar[str | None] = ContextVar("repo", default=None)


class RepoContextFilter(logging.Filter):
    """Log filter that adds run_id and repo to all log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.run_id = run_id_ctx.get()
        record.repo = repo_ctx.get()
        return True


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with additional fields."""

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = self.formatTime(record)
        log_record["level"] = record.levelname
        log_record["logger"] = record.name

        if getattr(record, "run_id", None):
            log_record["run_id"] = record.run_id
        if getattr(record, "repo", None):
            log_record["repo"] = record.repo

        log_record["module"] = record.module
        log_record["function"] = record.funcName
        log_record["line"] = record.lineno


class TextFormatter(logging.Formatter):
    """Plain formatter that prefixes the repository when one is in context."""

    def format(self, record: logging.LogRecord) -> str:
        repo = getattr(record, "repo", None)
        record.repo_prefix = f"[{repo}] " if repo else ""
        return super().format(record)


def setup_logging(level: str | None = None) -> None:
    """Configure structured logging for the application."""
    settings = get_settings()

    handler = logging.StreamHandler(sys.stderr)

    if settings.log_format == "json":
        formatter: logging.Formatter = CustomJsonFormatter(
            fmt="%(timestamp)s %(level)s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S%z",
        )
    else:
        formatter = TextFormatter(
            fmt="%(asctime)s | %(levelname)-8s | %(repo_prefix)s%(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    handler.setFormatter(formatter)
    handler.addFilter(RepoContextFilter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level or settings.log_level)

    # Reduce verbosity of third-party loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    logging.debug(
        "Logging configured",
        extra={"log_level": level or settings.log_level, "log_format": settings.log_format},
    )
