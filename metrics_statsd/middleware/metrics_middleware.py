"""FastAPI middleware that times API requests into the metrics registry.

Each /api/** route gets a Timer named ``http.requests.<METHOD>.<route>``,
where ``<route>`` is the route template with separators replaced by
underscores (``/api/v1/metrics/`` -> ``api_v1_metrics``). The StatsD
reporter exports these timers like any other metric.
"""

import re
import time
from typing import Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from metrics_statsd.core.logging_config import get_logger
from metrics_statsd.services.metrics.instance import get_metrics_registry
from metrics_statsd.services.metrics.names import MetricName
from metrics_statsd.services.metrics.registry import MetricsRegistry

logger = get_logger(__name__)

_ROUTE_SEPARATORS = re.compile(r"[/.{}]+")


def route_metric_name(method: str, route_path: str) -> MetricName:
    """Timer name for a request, safe to flatten into a dotted StatsD name."""
    route = _ROUTE_SEPARATORS.sub("_", route_path).strip("_") or "root"
    return MetricName("http", "requests", route, scope=method.upper())


class RequestTimingMiddleware(BaseHTTPMiddleware):
    """Middleware that records latency of /api/** requests as registry timers."""

    def __init__(self, app, registry: Optional[MetricsRegistry] = None):
        super().__init__(app)
        self._registry = registry

    async def dispatch(self, request: Request, call_next) -> Response:
        """Process request and time it for API routes.

        Args:
            request: Incoming HTTP request
            call_next: Next middleware/handler in the chain

        Returns:
            HTTP response from downstream handlers
        """
        if not request.url.path.startswith("/api/"):
            return await call_next(request)

        t0 = time.monotonic_ns()
        response = await call_next(request)
        latency_ms = (time.monotonic_ns() - t0) / 1_000_000.0

        try:
            # Prefer the matched route template so path parameters don't explode cardinality
            route = request.scope.get("route")
            route_path = getattr(route, "path", None) or request.url.path
            registry = self._registry if self._registry is not None else get_metrics_registry()
            registry.timer(route_metric_name(request.method, route_path)).update(latency_ms)
        except Exception as e:
            logger.debug(f"Metrics middleware error for {request.method} {request.url.path}: {e}")

        return response
