from __future__ import annotations

from dataclasses import dataclass

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    start_http_server,
)


@dataclass(frozen=True)
class PrometheusMetrics:
    registry: CollectorRegistry
    pipeline_runs_total: Counter
    pipeline_stage_duration_seconds: Histogram
    active_pipelines: Gauge
    pr_created_total: Counter
    reviewer_request_failures_total: Counter


_REGISTRY = CollectorRegistry(auto_describe=True)

METRICS = PrometheusMetrics(
    registry=_REGISTRY,
    pipeline_runs_total=Counter(
        "repo_xargs_pipeline_runs_total",
        "Total repository pipelines by outcome",
        labelnames=("outcome",),
        registry=_REGISTRY,
    ),
    pipeline_stage_duration_seconds=Histogram(
        "repo_xargs_pipeline_stage_duration_seconds",
        "Pipeline stage duration in seconds by stage",
        labelnames=("stage",),
        registry=_REGISTRY,
        buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0, 600.0),
    ),
    active_pipelines=Gauge(
        "repo_xargs_active_pipelines",
        "Repository pipelines currently executing",
        registry=_REGISTRY,
    ),
    pr_created_total=Counter(
        "repo_xargs_pr_created_total",
        "Pull requests opened",
        registry=_REGISTRY,
    ),
    reviewer_request_failures_total=Counter(
        "repo_xargs_reviewer_request_failures_total",
        "Best-effort reviewer or assignee requests that failed",
        registry=_REGISTRY,
    ),
)


def observe_stage(*, stage: str, duration_seconds: float) -> None:
    METRICS.pipeline_stage_duration_seconds.labels(stage=stage).observe(max(0.0, duration_seconds))


def start_metrics_server(*, port: int) -> None:
    start_http_server(port, registry=METRICS.registry)
