"""StatsD export of the in-process metrics registry.

This package flattens metric names, formats values, decomposes each metric
kind into StatsD samples and ships them over UDP on a fixed schedule.
"""

from .client import IStatsDClient, StatsDClient
from .dispatcher import MetricDispatcher, Sample
from .errors import StatsDError, TransportConnectError, TransportCloseError, MetricReadFault
from .formatting import format_value, format_long, format_double
from .naming import sanitize_name
from .reporter import StatsDReporter, CycleReport
from .scheduler import start_reporter, stop_reporter, is_reporter_running, get_active_reporter

__all__ = [
    "IStatsDClient",
    "StatsDClient",
    "MetricDispatcher",
    "Sample",
    "StatsDError",
    "TransportConnectError",
    "TransportCloseError",
    "MetricReadFault",
    "format_value",
    "format_long",
    "format_double",
    "sanitize_name",
    "StatsDReporter",
    "CycleReport",
    "start_reporter",
    "stop_reporter",
    "is_reporter_running",
    "get_active_reporter",
]
