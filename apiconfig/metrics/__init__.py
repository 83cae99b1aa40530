from apiconfig.metrics.counters import increment_poll, increment_poll_error
from apiconfig.metrics.gauges import set_consecutive_failures, set_last_success, set_published_config
from apiconfig.metrics.histograms import observe_poll_duration
from apiconfig.metrics.prometheus import get_prometheus_registry

__all__ = [
    "get_prometheus_registry",
    "increment_poll",
    "increment_poll_error",
    "observe_poll_duration",
    "set_consecutive_failures",
    "set_last_success",
    "set_published_config",
]
