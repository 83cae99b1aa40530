from __future__ import annotations

from prometheus_client import Histogram

from apiconfig.metrics.prometheus import get_prometheus_registry, sanitize_label

POLL_BUCKETS = [0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0]

api_config_poll_duration_metric = Histogram(
    "api_config_poll_duration_seconds",
    "Time spent fetching and transforming configuration",
    ["mode"],
    buckets=POLL_BUCKETS,
    registry=get_prometheus_registry(),
)


def observe_poll_duration(*, mode: str, duration_seconds: float) -> None:
    api_config_poll_duration_metric.labels(mode=sanitize_label(mode)).observe(max(0.0, float(duration_seconds)))
