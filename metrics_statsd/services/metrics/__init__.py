"""In-process metrics: instruments, identifiers and the registry that holds them.

Application code records into a MetricsRegistry; exporters such as the
StatsD reporter read it periodically.
"""

from .names import MetricName
from .instruments import Clock, Counter, Gauge, Histogram, Meter, Timer, Snapshot, MetricProcessor
from .registry import MetricsRegistry, MetricPredicate, ALL_METRICS, GroupPredicate
from .instance import get_metrics_registry, set_metrics_registry

__all__ = [
    "MetricName",
    "Clock",
    "Counter",
    "Gauge",
    "Histogram",
    "Meter",
    "Timer",
    "Snapshot",
    "MetricProcessor",
    "MetricsRegistry",
    "MetricPredicate",
    "ALL_METRICS",
    "GroupPredicate",
    "get_metrics_registry",
    "set_metrics_registry",
]
