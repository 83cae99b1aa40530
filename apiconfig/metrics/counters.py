from __future__ import annotations

from prometheus_client import Counter

from apiconfig.metrics.prometheus import get_prometheus_registry, sanitize_label

api_config_polls_metric = Counter(
    "api_config_polls_total",
    "Configuration polls by outcome",
    ["outcome"],
    registry=get_prometheus_registry(),
)

api_config_poll_errors_metric = Counter(
    "api_config_poll_errors_total",
    "Errors reported by failed configuration polls",
    ["error_type"],
    registry=get_prometheus_registry(),
)


def increment_poll(*, outcome: str) -> None:
    api_config_polls_metric.labels(outcome=sanitize_label(outcome)).inc()


def increment_poll_error(*, error_type: str, count: int = 1) -> None:
    if count <= 0:
        return
    api_config_poll_errors_metric.labels(error_type=sanitize_label(error_type)).inc(count)
