"""Errors raised by the StatsD export pipeline."""

from typing import Optional


class StatsDError(Exception):
    """Base class for StatsD reporting errors."""


class TransportConnectError(StatsDError):
    """The transport could not be opened. Nothing was sent."""


class TransportCloseError(StatsDError):
    """The transport failed while being released after a cycle."""


class MetricReadFault(StatsDError):
    """Reading or decomposing a single metric raised.

    The original exception is chained as ``__cause__``.
    """

    def __init__(self, metric_name: str, message: Optional[str] = None):
        self.metric_name = metric_name
        super().__init__(message or f"Failed to read metric {metric_name}")
