from repo_xargs.tracking.outcomes import DuplicateOutcomeError, OutcomeTracker

__all__ = ["DuplicateOutcomeError", "OutcomeTracker"]
