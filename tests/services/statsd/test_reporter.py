"""
Tests for StatsDReporter export cycles.

A RecordingStatsD transport (see conftest) captures what each cycle sends.
"""
import logging
import socket
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from metrics_statsd.services.metrics import instance
from metrics_statsd.services.metrics.instruments import Counter
from metrics_statsd.services.metrics.names import MetricName
from metrics_statsd.services.metrics.registry import GroupPredicate, MetricsRegistry
from metrics_statsd.services.statsd.client import StatsDClient
from metrics_statsd.services.statsd.errors import TransportCloseError, TransportConnectError
from metrics_statsd.services.statsd.reporter import StatsDReporter


@pytest.fixture
def reporter(registry, statsd, fake_clock):
    return StatsDReporter(registry=registry, statsd=statsd, clock=fake_clock)


def _counter(registry, group, type_, name, count, scope=None):
    registry.counter(MetricName(group, type_, name, scope=scope)).inc(count)


class TestExportCycle:
    """Tests for a normal export cycle"""

    def test_sends_every_sample_and_closes(self, registry, statsd, reporter):
        _counter(registry, "app", "jobs", "processed", 42)
        registry.gauge(MetricName("app", "queue", "depth"), lambda: 3.5)

        report = reporter.run()

        assert statsd.sent == [
            ("app.jobs.processed", "42"),
            ("app.queue.depth", "3.50"),
        ]
        assert statsd.connect_calls == 1
        assert statsd.close_calls == 1
        assert report.connected is True
        assert report.metrics_reported == 2
        assert report.samples_sent == 2
        assert report.metrics_failed == 0

    def test_prefix_is_joined_with_a_dot(self, registry, statsd, fake_clock):
        _counter(registry, "app", "jobs", "processed", 1)
        reporter = StatsDReporter(registry=registry, statsd=statsd, prefix="svc", clock=fake_clock)

        reporter.run()

        assert statsd.sent == [("svc.app.jobs.processed", "1")]

    def test_suffixes_are_appended_to_base_name(self, registry, statsd, reporter):
        registry.meter(MetricName("app", "jobs", "rate", scope="eu")).mark(4)

        reporter.run()

        assert [name for name, _ in statsd.sent] == [
            "app.jobs.eu.rate",
            "app.jobs.eu.rate.meanRate",
            "app.jobs.eu.rate.1MinuteRate",
            "app.jobs.eu.rate.5MinuteRate",
            "app.jobs.eu.rate.15MinuteRate",
        ]

    def test_metrics_are_sent_in_group_then_name_order(self, registry, statsd, reporter):
        _counter(registry, "web", "requests", "total", 1)
        _counter(registry, "app", "jobs", "processed", 2)
        _counter(registry, "app", "jobs", "failed", 3)

        reporter.run()

        assert [name for name, _ in statsd.sent] == [
            "app.jobs.failed",
            "app.jobs.processed",
            "web.requests.total",
        ]

    def test_predicate_filters_metrics(self, registry, statsd, fake_clock):
        _counter(registry, "web", "requests", "total", 1)
        _counter(registry, "app", "jobs", "processed", 2)
        reporter = StatsDReporter(
            registry=registry, statsd=statsd, predicate=GroupPredicate("app"), clock=fake_clock
        )

        reporter.run()

        assert statsd.sent == [("app.jobs.processed", "2")]

    def test_unsupported_gauge_is_skipped_without_logging(self, registry, statsd, reporter, caplog):
        registry.gauge(MetricName("app", "build", "version"), lambda: "1.2.3")

        with caplog.at_level(logging.DEBUG, logger="metrics_statsd"):
            report = reporter.run()

        assert statsd.sent == []
        assert report.metrics_failed == 0
        assert not [r for r in caplog.records if r.levelno >= logging.WARNING]

    def test_report_carries_clock_epoch_and_bookkeeping(self, registry, reporter, fake_clock):
        report = reporter.run()

        assert report.epoch == fake_clock.epoch
        assert reporter.cycles_total == 1
        assert reporter.last_cycle is report

    def test_cycles_are_independent(self, registry, statsd, reporter):
        counter = registry.counter(MetricName("app", "jobs", "processed"))
        counter.inc(1)
        reporter.run()
        counter.inc(1)
        reporter.run()

        assert statsd.sent == [("app.jobs.processed", "1"), ("app.jobs.processed", "2")]
        assert statsd.close_calls == 2
        assert reporter.cycles_total == 2


class TestFaultContainment:
    """Tests for failures during a cycle"""

    def test_connect_failure_sends_nothing_and_skips_close(self, registry, statsd, reporter, caplog):
        """Test that a connect error aborts the cycle without touching the send path."""
        _counter(registry, "app", "jobs", "processed", 1)
        statsd.connect_error = TransportConnectError("connection refused")

        with caplog.at_level(logging.INFO, logger="metrics_statsd"):
            report = reporter.run()

        assert statsd.sent == []
        assert statsd.close_calls == 0
        assert report.connected is False
        assert report.samples_sent == 0
        assert "failed to connect" in caplog.text

    def test_next_cycle_after_connect_failure_proceeds(self, registry, statsd, reporter):
        _counter(registry, "app", "jobs", "processed", 1)
        statsd.connect_error = TransportConnectError("connection refused")
        reporter.run()

        statsd.connect_error = None
        report = reporter.run()

        assert report.connected is True
        assert statsd.sent == [("app.jobs.processed", "1")]

    def test_one_faulting_metric_does_not_abort_the_sweep(self, registry, statsd, reporter, caplog):
        """Test that N metrics with one fault yield N-1 reported metrics and one logged error."""
        _counter(registry, "app", "jobs", "a_first", 1)
        registry.gauge(MetricName("app", "jobs", "b_broken"), lambda: 1 / 0)
        _counter(registry, "app", "jobs", "c_last", 3)

        with caplog.at_level(logging.ERROR, logger="metrics_statsd"):
            report = reporter.run()

        assert statsd.sent == [("app.jobs.a_first", "1"), ("app.jobs.c_last", "3")]
        assert report.metrics_reported == 2
        assert report.metrics_failed == 1
        assert statsd.close_calls == 1
        errors = [r for r in caplog.records if r.levelno == logging.ERROR]
        assert len(errors) == 1
        assert "app.jobs.b_broken" in errors[0].getMessage()

    def test_faulting_timer_sends_none_of_its_samples(self, registry, statsd, reporter):
        timer = registry.timer(MetricName("app", "jobs", "latency"))
        timer.update(5.0)
        timer.snapshot = lambda: (_ for _ in ()).throw(RuntimeError("reservoir corrupted"))

        report = reporter.run()

        assert statsd.sent == []
        assert report.metrics_failed == 1

    def test_close_failure_is_logged_and_keeps_sent_samples(self, registry, statsd, reporter, caplog):
        _counter(registry, "app", "jobs", "processed", 1)
        statsd.close_error = TransportCloseError("bad file descriptor")

        with caplog.at_level(logging.INFO, logger="metrics_statsd"):
            report = reporter.run()

        assert statsd.sent == [("app.jobs.processed", "1")]
        assert report.samples_sent == 1
        assert "closing statsd connection" in caplog.text

    def test_unexpected_sweep_error_is_contained_and_transport_closed(self, registry, statsd, reporter, caplog):
        def exploding(predicate):
            raise RuntimeError("registry unavailable")

        registry.grouped_metrics = exploding

        with caplog.at_level(logging.ERROR, logger="metrics_statsd"):
            report = reporter.run()

        assert report is not None
        assert statsd.close_calls == 1
        assert "registry unavailable" in caplog.text

    def test_close_failure_does_not_mask_sweep_error(self, registry, statsd, reporter, caplog):
        registry.grouped_metrics = lambda predicate: (_ for _ in ()).throw(RuntimeError("sweep failed"))
        statsd.close_error = TransportCloseError("close failed")

        with caplog.at_level(logging.INFO, logger="metrics_statsd"):
            reporter.run()

        assert "sweep failed" in caplog.text
        assert "close failed" in caplog.text

    def test_missing_metric_in_snapshot_is_skipped(self, statsd, fake_clock):
        class RacyRegistry:
            def grouped_metrics(self, predicate):
                counter = Counter()
                counter.inc(9)
                return {"app": {MetricName("app", "jobs", "gone"): None, MetricName("app", "jobs", "kept"): counter}}

        reporter = StatsDReporter(registry=RacyRegistry(), statsd=statsd, clock=fake_clock)
        report = reporter.run()

        assert statsd.sent == [("app.jobs.kept", "9")]
        assert report.metrics_reported == 1

    def test_unencodable_name_does_not_abort_the_sweep(self, registry, fake_clock):
        """Test that a name the wire encoding rejects only costs that sample."""
        server = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        server.bind(("127.0.0.1", 0))
        server.settimeout(2.0)
        try:
            _counter(registry, "a", "b", "bad\ud800", 1)
            _counter(registry, "z", "b", "good", 2)
            client = StatsDClient("127.0.0.1", server.getsockname()[1])
            reporter = StatsDReporter(registry=registry, statsd=client, clock=fake_clock)

            report = reporter.run()
            data, _ = server.recvfrom(1024)
        finally:
            server.close()

        assert data == b"z.b.good:2|g"
        assert report.metrics_reported == 2
        assert client.connected is False

    def test_failing_clock_skips_the_cycle(self, registry, statsd, caplog):
        _counter(registry, "app", "jobs", "processed", 1)
        clock = MagicMock()
        clock.time.side_effect = OSError("clock unavailable")
        reporter = StatsDReporter(registry=registry, statsd=statsd, clock=clock)

        with caplog.at_level(logging.ERROR, logger="metrics_statsd"):
            report = reporter.run()

        assert report is not None
        assert report.connected is False
        assert statsd.connect_calls == 0
        assert reporter.cycles_total == 1
        assert "clock unavailable" in caplog.text

    def test_overlapping_cycle_is_skipped(self, statsd, reporter):
        reporter._cycle_lock.acquire()
        try:
            assert reporter.run() is None
        finally:
            reporter._cycle_lock.release()

        assert statsd.connect_calls == 0


class TestConstruction:
    """Tests for StatsDReporter construction"""

    def test_defaults_to_module_registry(self, statsd):
        default_registry = MetricsRegistry()
        previous = instance.get_metrics_registry()
        instance.set_metrics_registry(default_registry)
        try:
            reporter = StatsDReporter(statsd=statsd)
        finally:
            instance.set_metrics_registry(previous)

        assert reporter.registry is default_registry

    def test_builds_udp_client_from_host(self):
        reporter = StatsDReporter(registry=MetricsRegistry(), host="statsd.local", port=9125)

        assert isinstance(reporter.statsd, StatsDClient)
        assert (reporter.statsd.host, reporter.statsd.port) == ("statsd.local", 9125)

    def test_requires_host_or_client(self):
        with pytest.raises(ValueError):
            StatsDReporter(registry=MetricsRegistry())

    def test_no_prefix_means_no_leading_dot(self, statsd):
        assert StatsDReporter(registry=MetricsRegistry(), statsd=statsd).prefix == ""
        assert StatsDReporter(registry=MetricsRegistry(), statsd=statsd, prefix="").prefix == ""

    def test_from_settings(self):
        settings = SimpleNamespace(STATSD_HOST="10.0.0.5", STATSD_PORT=8126, STATSD_PREFIX="myservice")

        reporter = StatsDReporter.from_settings(settings, registry=MetricsRegistry())

        assert reporter.prefix == "myservice."
        assert reporter.statsd.host == "10.0.0.5"
        assert reporter.statsd.port == 8126
