from repo_xargs.pipeline.orchestrator import RunReport
from repo_xargs.reporting import render_summary
from repo_xargs.schemas.outcome import Outcome, OutcomeCategory


def _report() -> RunReport:
    outcomes = {
        "acme/api": Outcome(
            repository="acme/api",
            category=OutcomeCategory.PULL_REQUEST_OPENED,
            pull_request_url="https://github.com/acme/api/pull/4",
        ),
        "acme/web": Outcome(
            repository="acme/web",
            category=OutcomeCategory.COMMAND_EXECUTION_ERROR,
            detail="command exited with status 2",
        ),
        "acme/docs": Outcome(repository="acme/docs", category=OutcomeCategory.NO_CHANGES),
    }
    warnings = [
        Outcome(
            repository="acme/api",
            category=OutcomeCategory.REVIEWER_REQUEST_ERROR,
            detail="422 Reviews may only be requested from collaborators",
        )
    ]
    return RunReport(run_id="abc123", branch="repo-xargs-x", outcomes=outcomes, warnings=warnings)


def test_summary_groups_outcomes_by_category() -> None:
    text = render_summary(_report())

    assert text.startswith("Run abc123 on branch repo-xargs-x")
    assert "Pull requests opened (1)" in text
    assert "https://github.com/acme/api/pull/4" in text
    assert "Command failed (1)" in text
    assert "command exited with status 2" in text
    assert "Command made no changes (1)" in text
    assert "Reviewer or assignee request failed (warning) (1)" in text
    assert text.rstrip().endswith("2 succeeded, 1 failed")


def test_summary_lists_missing_repositories() -> None:
    text = render_summary(_report(), missing=["acme/ghost"])

    assert "Repositories not found (1)" in text
    assert "| acme/ghost |" in text


def test_summary_for_empty_run() -> None:
    text = render_summary(RunReport(run_id="abc123", branch="b"))

    assert "No repositories were processed." in text


def test_table_columns_are_aligned() -> None:
    lines = render_summary(_report()).splitlines()
    table = [line for line in lines if line.startswith(("|", "+"))]

    opened = table[:5]
    assert len({len(line) for line in opened}) == 1
