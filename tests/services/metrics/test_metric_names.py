"""
Unit tests for MetricName validation and ordering.
"""
import dataclasses

import pytest

from metrics_statsd.services.metrics.names import MetricName


def test_scope_defaults_to_none():
    name = MetricName("app", "jobs", "processed")

    assert name.scope is None
    assert name.has_scope is False


@pytest.mark.parametrize("field", ["group", "type", "name"])
def test_empty_components_are_rejected(field):
    """Test that group, type and name must be non-empty."""
    kwargs = {"group": "app", "type": "jobs", "name": "processed"}
    kwargs[field] = ""

    with pytest.raises(ValueError, match=field):
        MetricName(**kwargs)


def test_empty_scope_is_rejected_not_treated_as_absent():
    with pytest.raises(ValueError, match="scope"):
        MetricName("app", "jobs", "processed", scope="")


def test_names_are_immutable_and_hashable():
    name = MetricName("app", "jobs", "processed", scope="worker-1")

    with pytest.raises(dataclasses.FrozenInstanceError):
        name.scope = "worker-2"

    assert {name: 1}[MetricName("app", "jobs", "processed", scope="worker-1")] == 1


def test_ordering_puts_unscoped_before_scoped():
    """Test that names sort by group, type, name, then scope with None first."""
    names = [
        MetricName("b", "x", "y"),
        MetricName("a", "x", "y", scope="s2"),
        MetricName("a", "x", "y", scope="s1"),
        MetricName("a", "x", "y"),
        MetricName("a", "w", "z"),
    ]

    assert sorted(names) == [
        MetricName("a", "w", "z"),
        MetricName("a", "x", "y"),
        MetricName("a", "x", "y", scope="s1"),
        MetricName("a", "x", "y", scope="s2"),
        MetricName("b", "x", "y"),
    ]
