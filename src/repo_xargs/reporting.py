"""Plain-text summary of a finished run."""

from repo_xargs.pipeline.orchestrator import RunReport
from repo_xargs.schemas.outcome import OutcomeCategory

_DESCRIPTIONS = {
    OutcomeCategory.PULL_REQUEST_OPENED: "Pull requests opened",
    OutcomeCategory.PULL_REQUEST_ALREADY_OPEN: "Pull request already open",
    OutcomeCategory.NO_CHANGES: "Command made no changes",
    OutcomeCategory.COMMITTED_DRY_RUN: "Committed locally (dry run)",
    OutcomeCategory.PUSHED_WITHOUT_PULL_REQUEST: "Branch pushed, pull request skipped",
    OutcomeCategory.ARCHIVED_SKIPPED: "Archived repositories skipped",
    OutcomeCategory.CLONE_ERROR: "Clone failed",
    OutcomeCategory.HEAD_REF_ERROR: "Could not resolve HEAD",
    OutcomeCategory.WORKTREE_ERROR: "Could not open worktree",
    OutcomeCategory.BRANCH_CHECKOUT_ERROR: "Branch checkout failed",
    OutcomeCategory.COMMAND_EXECUTION_ERROR: "Command failed",
    OutcomeCategory.STAGING_ERROR: "Staging failed",
    OutcomeCategory.COMMIT_ERROR: "Commit failed",
    OutcomeCategory.PUSH_ERROR: "Push failed",
    OutcomeCategory.PULL_REQUEST_ERROR: "Pull request failed",
    OutcomeCategory.UNEXPECTED_ERROR: "Unexpected error",
    OutcomeCategory.REVIEWER_REQUEST_ERROR: "Reviewer or assignee request failed (warning)",
    OutcomeCategory.BRANCH_REMOTE_PULL_FAILED: "Remote branch pull failed (warning)",
}


def _table(headers: tuple[str, ...], rows: list[tuple[str, ...]]) -> list[str]:
    widths = [max([len(h), *(len(r[i]) for r in rows)]) for i, h in enumerate(headers)]

    def fmt(cells: tuple[str, ...]) -> str:
        return "| " + " | ".join(c.ljust(w) for c, w in zip(cells, widths)) + " |"

    rule = "+-" + "-+-".join("-" * w for w in widths) + "-+"
    return [rule, fmt(headers), rule, *(fmt(r) for r in rows), rule]


def render_summary(report: RunReport, missing: list[str] | None = None) -> str:
    """Render the run report as tables grouped by outcome category."""
    lines = [f"Run {report.run_id} on branch {report.branch}", ""]

    grouped: dict[OutcomeCategory, list[tuple[str, ...]]] = {}
    for repo, outcome in sorted(report.outcomes.items()):
        detail = outcome.pull_request_url or outcome.detail or ""
        grouped.setdefault(outcome.category, []).append((repo, detail))
    for warning in report.warnings:
        grouped.setdefault(warning.category, []).append((warning.repository, warning.detail or ""))

    if not grouped and not missing:
        lines.append("No repositories were processed.")
        return "\n".join(lines)

    for category in OutcomeCategory:
        rows = grouped.get(category)
        if not rows:
            continue
        lines.append(f"{_DESCRIPTIONS[category]} ({len(rows)})")
        lines.extend(_table(("Repository", "Detail"), rows))
        lines.append("")

    if missing:
        lines.append(f"Repositories not found ({len(missing)})")
        lines.extend(_table(("Repository",), [(repo,) for repo in missing]))
        lines.append("")

    succeeded = sum(1 for o in report.outcomes.values() if not o.is_error)
    lines.append(f"{succeeded} succeeded, {len(report.errors)} failed")
    return "\n".join(lines)
