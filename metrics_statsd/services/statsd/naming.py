"""Flattening of structured metric identifiers into dotted StatsD names."""

from metrics_statsd.services.metrics.names import MetricName

SEPARATOR = "."


def sanitize_name(name: MetricName) -> str:
    """Return ``group.type[.scope].name`` for ``name``.

    Components are joined as-is: a component that itself contains a dot makes
    the flattened name ambiguous, and callers are expected to avoid that.
    """
    parts = [name.group, name.type]
    if name.has_scope:
        parts.append(name.scope)
    parts.append(name.name)
    return SEPARATOR.join(parts)
