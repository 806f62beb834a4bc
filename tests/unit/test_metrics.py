from prometheus_client import generate_latest
from repo_xargs.observability.metrics import METRICS
from repo_xargs.pipeline.orchestrator import Orchestrator


def _value(name: str, labels: dict[str, str] | None = None) -> float:
    return METRICS.registry.get_sample_value(name, labels or {}) or 0.0


def test_pipeline_outcomes_and_stages_are_exported(
    host, git, runner, config, make_repo, tmp_path
) -> None:
    runner.actions["acme/noop"] = "noop"
    opened_before = _value(
        "repo_xargs_pipeline_runs_total", {"outcome": "pull_request_opened"}
    )
    prs_before = _value("repo_xargs_pr_created_total")

    Orchestrator(host=host, git=git, runner=runner, workspace_root=tmp_path).run(
        config, [make_repo("acme/app"), make_repo("acme/noop")]
    )

    opened = _value("repo_xargs_pipeline_runs_total", {"outcome": "pull_request_opened"})
    assert opened == opened_before + 1
    assert _value("repo_xargs_pr_created_total") == prs_before + 1
    assert _value("repo_xargs_active_pipelines") == 0
    assert _value("repo_xargs_pipeline_stage_duration_seconds_count", {"stage": "clone"}) >= 2


def test_metrics_live_on_private_registry() -> None:
    body = generate_latest(METRICS.registry)

    assert b"repo_xargs_pipeline_runs_total" in body
    assert b"repo_xargs_active_pipelines" in body
