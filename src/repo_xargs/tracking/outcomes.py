"""Thread-safe sink for per-repository outcomes."""

import threading
from collections import defaultdict

from repo_xargs.schemas.outcome import Outcome, OutcomeCategory


class DuplicateOutcomeError(Exception):
    """Raised when a repository already has an outcome for this run."""

    def __init__(self, existing: Outcome, attempted: Outcome):
        super().__init__(
            f"Outcome for {existing.repository} already recorded as "
            f"{existing.category.value}, refusing {attempted.category.value}"
        )
        self.existing = existing
        self.attempted = attempted


class OutcomeTracker:
    """
    Collects exactly one outcome per repository.

    Writes come from concurrently running pipelines and are serialized by a
    lock. Reads are only meaningful once the orchestrator has waited for
    every pipeline.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._outcomes: dict[str, Outcome] = {}
        self._warnings: list[Outcome] = []

    def record(self, outcome: Outcome) -> Outcome:
        """Store ``outcome``. Raises DuplicateOutcomeError on overwrite."""
        with self._lock:
            existing = self._outcomes.get(outcome.repository)
            if existing is not None:
                raise DuplicateOutcomeError(existing, outcome)
            self._outcomes[outcome.repository] = outcome
        return outcome

    def record_warning(
        self,
        repository: str,
        category: OutcomeCategory,
        detail: str | None = None,
    ) -> None:
        """Track a non-fatal problem without touching the primary outcome."""
        warning = Outcome(repository=repository, category=category, detail=detail)
        with self._lock:
            self._warnings.append(warning)

    def get(self, repository: str) -> Outcome | None:
        with self._lock:
            return self._outcomes.get(repository)

    def snapshot(self) -> dict[str, Outcome]:
        with self._lock:
            return dict(self._outcomes)

    def warnings(self) -> list[Outcome]:
        with self._lock:
            return list(self._warnings)

    def by_category(self) -> dict[OutcomeCategory, list[str]]:
        grouped: dict[OutcomeCategory, list[str]] = defaultdict(list)
        for repository, outcome in sorted(self.snapshot().items()):
            grouped[outcome.category].append(repository)
        return dict(grouped)

    def has_errors(self) -> bool:
        return any(outcome.is_error for outcome in self.snapshot().values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._outcomes)
