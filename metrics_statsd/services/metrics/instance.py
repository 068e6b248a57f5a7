"""Module-level singleton accessor for the default metrics registry.

Application code registers its instruments here and the StatsD reporter
exports from here unless it is handed a registry explicitly.
"""

from .registry import MetricsRegistry

# Module-level singleton instance
_registry: MetricsRegistry = MetricsRegistry()


def get_metrics_registry() -> MetricsRegistry:
    """Get the default metrics registry.

    Returns:
        The process-wide MetricsRegistry instance
    """
    return _registry


def set_metrics_registry(registry: MetricsRegistry) -> None:
    """Replace the default metrics registry.

    Reporters created afterwards without an explicit registry export from
    the new one; running reporters keep the registry they were built with.

    Args:
        registry: The MetricsRegistry instance to use
    """
    global _registry
    _registry = registry
