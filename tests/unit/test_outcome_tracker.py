import threading

import pytest
from repo_xargs.schemas.outcome import Outcome, OutcomeCategory
from repo_xargs.tracking.outcomes import DuplicateOutcomeError, OutcomeTracker


def _outcome(repo: str, category: OutcomeCategory = OutcomeCategory.NO_CHANGES) -> Outcome:
    return Outcome(repository=repo, category=category)


def test_record_and_get(tracker: OutcomeTracker) -> None:
    recorded = tracker.record(_outcome("acme/app"))

    assert tracker.get("acme/app") == recorded
    assert tracker.get("acme/other") is None
    assert len(tracker) == 1


def test_outcome_is_never_overwritten(tracker: OutcomeTracker) -> None:
    tracker.record(_outcome("acme/app", OutcomeCategory.PULL_REQUEST_OPENED))

    with pytest.raises(DuplicateOutcomeError) as excinfo:
        tracker.record(_outcome("acme/app", OutcomeCategory.PUSH_ERROR))

    assert excinfo.value.existing.category == OutcomeCategory.PULL_REQUEST_OPENED
    assert tracker.get("acme/app").category == OutcomeCategory.PULL_REQUEST_OPENED


def test_concurrent_records_from_many_threads(tracker: OutcomeTracker) -> None:
    names = [f"acme/repo-{i}" for i in range(200)]
    start = threading.Event()

    def _write(name: str) -> None:
        start.wait()
        tracker.record(_outcome(name))

    threads = [threading.Thread(target=_write, args=(name,)) for name in names]
    for thread in threads:
        thread.start()
    start.set()
    for thread in threads:
        thread.join()

    assert sorted(tracker.snapshot()) == sorted(names)


def test_by_category_groups_sorted_repositories(tracker: OutcomeTracker) -> None:
    tracker.record(_outcome("acme/b", OutcomeCategory.PULL_REQUEST_OPENED))
    tracker.record(_outcome("acme/a", OutcomeCategory.PULL_REQUEST_OPENED))
    tracker.record(_outcome("acme/c", OutcomeCategory.CLONE_ERROR))

    assert tracker.by_category() == {
        OutcomeCategory.PULL_REQUEST_OPENED: ["acme/a", "acme/b"],
        OutcomeCategory.CLONE_ERROR: ["acme/c"],
    }
    assert tracker.has_errors()


def test_warnings_do_not_affect_primary_outcome(tracker: OutcomeTracker) -> None:
    tracker.record(_outcome("acme/app", OutcomeCategory.PULL_REQUEST_OPENED))
    tracker.record_warning("acme/app", OutcomeCategory.REVIEWER_REQUEST_ERROR, "422")

    [warning] = tracker.warnings()
    assert warning.detail == "422"
    assert warning.category.is_warning
    assert tracker.get("acme/app").category == OutcomeCategory.PULL_REQUEST_OPENED
    assert not tracker.has_errors()


def test_snapshot_is_a_copy(tracker: OutcomeTracker) -> None:
    tracker.record(_outcome("acme/app"))

    snapshot = tracker.snapshot()
    snapshot.clear()

    assert len(tracker) == 1
