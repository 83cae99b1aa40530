from __future__ import annotations

from prometheus_client import Gauge

from apiconfig.metrics.prometheus import get_prometheus_registry, sanitize_label

api_config_last_success_metric = Gauge(
    "api_config_last_success_timestamp_seconds",
    "Unix time of the last successful configuration poll",
    registry=get_prometheus_registry(),
)

api_config_published_version_metric = Gauge(
    "api_config_published_version",
    "Version number of the configuration currently served",
    registry=get_prometheus_registry(),
)

api_config_records_metric = Gauge(
    "api_config_records",
    "Records in the configuration currently served",
    ["kind"],
    registry=get_prometheus_registry(),
)

api_config_consecutive_failures_metric = Gauge(
    "api_config_consecutive_failures",
    "Configuration polls failed since the last success",
    registry=get_prometheus_registry(),
)


def set_last_success(*, timestamp: float) -> None:
    api_config_last_success_metric.set(float(timestamp))


def set_published_config(*, version: int, counts: dict[str, int]) -> None:
    api_config_published_version_metric.set(float(version))
    for kind, count in counts.items():
        api_config_records_metric.labels(kind=sanitize_label(kind)).set(max(0, int(count)))


def set_consecutive_failures(*, count: int) -> None:
    api_config_consecutive_failures_metric.set(max(0, int(count)))
