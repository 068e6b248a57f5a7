"""Process and host gauges backed by psutil.

Unlike a polling probe these gauges hold no state: psutil is queried only
when an exporter reads the gauge, so values are as fresh as the export cycle.
"""

from typing import List, Optional

import psutil

from metrics_statsd.core.logging_config import get_logger
from .names import MetricName
from .registry import MetricsRegistry

logger = get_logger(__name__)

BYTES_PER_MB = 1024 * 1024


def register_process_gauges(registry: MetricsRegistry, process: Optional[psutil.Process] = None) -> List[MetricName]:
    """Register process and system gauges in ``registry``.

    Args:
        registry: MetricsRegistry to populate
        process: psutil.Process to observe (defaults to the current process)

    Returns:
        The names of the registered gauges
    """
    proc = process or psutil.Process()

    gauges = {
        MetricName("process", "memory", "rss_mb"): lambda: proc.memory_info().rss / BYTES_PER_MB,
        MetricName("process", "memory", "vms_mb"): lambda: proc.memory_info().vms / BYTES_PER_MB,
        MetricName("process", "cpu", "percent"): lambda: proc.cpu_percent(interval=None),
        MetricName("process", "threads", "count"): proc.num_threads,
        MetricName("system", "cpu", "percent"): lambda: psutil.cpu_percent(interval=None),
        MetricName("system", "memory", "percent"): lambda: psutil.virtual_memory().percent,
    }

    for name, value_fn in gauges.items():
        registry.gauge(name, value_fn)

    logger.info(f"Registered {len(gauges)} process gauges for pid {proc.pid}")
    return list(gauges)


def unregister_process_gauges(registry: MetricsRegistry, names: List[MetricName]) -> None:
    """Remove gauges previously returned by register_process_gauges."""
    for name in names:
        registry.remove(name)
