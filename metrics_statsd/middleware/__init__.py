"""HTTP middleware that feeds the metrics registry."""

from .metrics_middleware import RequestTimingMiddleware

__all__ = ["RequestTimingMiddleware"]
