"""MetricsRegistry - In-memory home of every registered metric.

Instruments are created on first request and shared afterwards. Readers such
as the StatsD reporter never iterate the live dict: they receive point-in-time
copies built under the registry lock, so metrics can be added or removed
concurrently with an export sweep.
"""

import threading
from typing import Any, Callable, Dict, List, Optional, Protocol, Type, TypeVar, TYPE_CHECKING

from .instruments import (
    Clock, Counter, DEFAULT_CLOCK, Gauge, Histogram, Meter, Metric, Timer, metric_kind
)
from .names import MetricName

if TYPE_CHECKING:
    from .models import MetricsListModel

M = TypeVar("M", Counter, Meter, Histogram, Timer, Gauge)


class MetricPredicate(Protocol):
    """Decides whether a metric takes part in an export."""

    def matches(self, name: MetricName, metric: Metric) -> bool:
        ...


class _AllMetrics:
    def matches(self, name: MetricName, metric: Metric) -> bool:
        return True

    def __repr__(self) -> str:
        return "ALL_METRICS"


ALL_METRICS: MetricPredicate = _AllMetrics()


class GroupPredicate:
    """Accepts metrics whose group is one of ``groups``."""

    def __init__(self, *groups: str):
        self.groups = frozenset(groups)

    def matches(self, name: MetricName, metric: Metric) -> bool:
        return name.group in self.groups


class MetricsRegistry:
    """Thread-safe registry of named metrics."""

    def __init__(self, clock: Optional[Clock] = None):
        self.clock = clock or DEFAULT_CLOCK
        self._metrics: Dict[MetricName, Metric] = {}
        self._lock = threading.Lock()

    def _get_or_add(self, name: MetricName, kind: Type[M], factory: Callable[[], M]) -> M:
        with self._lock:
            existing = self._metrics.get(name)
            if existing is None:
                metric = factory()
                self._metrics[name] = metric
                return metric
            if not isinstance(existing, kind):
                raise ValueError(
                    f"{name} is already registered as a {metric_kind(existing)}, not a {kind.__name__.lower()}"
                )
            return existing

    def counter(self, name: MetricName) -> Counter:
        return self._get_or_add(name, Counter, Counter)

    def meter(self, name: MetricName) -> Meter:
        return self._get_or_add(name, Meter, lambda: Meter(self.clock))

    def histogram(self, name: MetricName) -> Histogram:
        return self._get_or_add(name, Histogram, Histogram)

    def timer(self, name: MetricName) -> Timer:
        return self._get_or_add(name, Timer, lambda: Timer(self.clock))

    def gauge(self, name: MetricName, value_fn: Callable[[], Any]) -> Gauge:
        """Register a gauge backed by ``value_fn``. An existing gauge is returned unchanged."""
        return self._get_or_add(name, Gauge, lambda: Gauge(value_fn))

    def get(self, name: MetricName) -> Optional[Metric]:
        with self._lock:
            return self._metrics.get(name)

    def remove(self, name: MetricName) -> bool:
        with self._lock:
            return self._metrics.pop(name, None) is not None

    def all_metrics(self) -> Dict[MetricName, Metric]:
        """Copy of every registered metric, ordered by name."""
        with self._lock:
            items = list(self._metrics.items())
        return dict(sorted(items, key=lambda item: item[0].sort_key))

    def grouped_metrics(self, predicate: MetricPredicate = ALL_METRICS) -> Dict[str, Dict[MetricName, Metric]]:
        """Point-in-time view grouped by ``MetricName.group``.

        Groups are ordered by group name and each group's metrics by name.
        Only metrics accepted by ``predicate`` are included.
        """
        grouped: Dict[str, Dict[MetricName, Metric]] = {}
        for name, metric in self.all_metrics().items():
            if predicate.matches(name, metric):
                grouped.setdefault(name.group, {})[name] = metric
        return {group: grouped[group] for group in sorted(grouped)}

    def __len__(self) -> int:
        return len(self._metrics)

    def snapshot(self) -> "MetricsListModel":
        """Describe the registered metrics as a Pydantic MetricsListModel."""
        # Import here to avoid circular imports
        from .models import MetricInfoModel, MetricsListModel

        metrics: List[MetricInfoModel] = [
            MetricInfoModel(
                group=name.group,
                type=name.type,
                name=name.name,
                scope=name.scope,
                kind=metric_kind(metric),
            )
            for name, metric in self.all_metrics().items()
        ]
        return MetricsListModel(metrics=metrics, total=len(metrics))

    def reset(self) -> None:
        """Drop every registered metric. Used for testing."""
        with self._lock:
            self._metrics.clear()
