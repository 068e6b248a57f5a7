"""StatsDReporter - one export cycle from the metrics registry to StatsD.

A cycle opens the transport, sweeps every metric accepted by the predicate,
sends the samples produced by MetricDispatcher and always closes the
transport again. Failures are contained and logged:

    clock failure        -> cycle skipped, nothing sent
    connect failure      -> cycle skipped, nothing sent
    single metric fault  -> that metric skipped, sweep continues
    close failure        -> logged, samples already sent stand

No exception escapes ``run()``.
"""

import threading
import time
from dataclasses import dataclass
from typing import Optional

from metrics_statsd.core.logging_config import get_logger
from metrics_statsd.services.metrics.instance import get_metrics_registry
from metrics_statsd.services.metrics.instruments import Clock, DEFAULT_CLOCK
from metrics_statsd.services.metrics.registry import ALL_METRICS, MetricPredicate, MetricsRegistry
from .client import IStatsDClient, StatsDClient
from .dispatcher import MetricDispatcher
from .errors import MetricReadFault, TransportCloseError, TransportConnectError
from .naming import sanitize_name

logger = get_logger(__name__)


@dataclass
class CycleReport:
    """Outcome of one export cycle."""
    epoch: int
    connected: bool = False
    metrics_reported: int = 0
    metrics_failed: int = 0
    samples_sent: int = 0
    duration_ms: float = 0.0


class StatsDReporter:
    """Exports a MetricsRegistry to StatsD, one cycle per ``run()`` call."""

    def __init__(
        self,
        registry: Optional[MetricsRegistry] = None,
        statsd: Optional[IStatsDClient] = None,
        host: Optional[str] = None,
        port: int = 8125,
        prefix: Optional[str] = None,
        predicate: MetricPredicate = ALL_METRICS,
        clock: Optional[Clock] = None,
        name: str = "statsd-reporter",
    ):
        """Initialize the reporter.

        Args:
            registry: Registry to export (defaults to the module-level registry)
            statsd: Transport to send through; built from ``host``/``port`` when omitted
            host: StatsD host, required when ``statsd`` is omitted
            port: StatsD port
            prefix: Optional name prefix; a '.' is inserted after it on the wire
            predicate: Decides which metrics are exported
            clock: Time source for the cycle timestamp
            name: Reporter name used in logs and task names
        """
        if statsd is None:
            if not host:
                raise ValueError("Either a statsd client or a host must be given")
            statsd = StatsDClient(host, port)

        self.registry = registry if registry is not None else get_metrics_registry()
        self.statsd = statsd
        self.prefix = f"{prefix}." if prefix else ""
        self.predicate = predicate
        self.clock = clock or DEFAULT_CLOCK
        self.name = name
        self.dispatcher = MetricDispatcher()

        self.cycles_total = 0
        self.last_cycle: Optional[CycleReport] = None
        self._cycle_lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings, registry: Optional[MetricsRegistry] = None) -> "StatsDReporter":
        """Build a reporter from a Settings object (see core/config.py)."""
        return cls(
            registry=registry,
            host=settings.STATSD_HOST,
            port=settings.STATSD_PORT,
            prefix=settings.STATSD_PREFIX or None,
        )

    def run(self) -> Optional[CycleReport]:
        """Run one export cycle.

        Returns:
            The cycle's CycleReport, or None if another cycle was still running
        """
        if not self._cycle_lock.acquire(blocking=False):
            logger.warning(f"{self.name}: previous export cycle still running, skipping")
            return None

        try:
            report = self._run_cycle()
            self.cycles_total += 1
            self.last_cycle = report
            return report
        finally:
            self._cycle_lock.release()

    def _run_cycle(self) -> CycleReport:
        t0 = time.monotonic_ns()
        try:
            epoch = self.clock.time()
        except Exception as e:
            logger.error(f"{self.name}: failed to read clock, skipping cycle: {e}")
            return CycleReport(epoch=0)
        report = CycleReport(epoch=epoch)

        try:
            self.statsd.connect()
        except TransportConnectError as e:
            logger.info(f"{self.name}: failed to connect to statsd: {e}")
            report.duration_ms = (time.monotonic_ns() - t0) / 1_000_000.0
            return report

        report.connected = True
        try:
            self._report_metrics(report)
        except Exception as e:
            logger.error(f"{self.name}: export cycle aborted: {e}")
        finally:
            try:
                self.statsd.close()
            except TransportCloseError as e:
                logger.info(f"{self.name}: failure when closing statsd connection: {e}")

        report.duration_ms = (time.monotonic_ns() - t0) / 1_000_000.0
        logger.debug(
            f"{self.name}: sent {report.samples_sent} samples for {report.metrics_reported} metrics "
            f"({report.metrics_failed} failed) in {report.duration_ms:.2f}ms"
        )
        return report

    def _report_metrics(self, report: CycleReport) -> None:
        for metrics in self.registry.grouped_metrics(self.predicate).values():
            for metric_name, metric in metrics.items():
                # Metric may have been removed after the snapshot was taken
                if metric is None:
                    continue

                sanitized = sanitize_name(metric_name)
                try:
                    samples = self.dispatcher.dispatch(sanitized, metric, report.epoch)
                except MetricReadFault as e:
                    report.metrics_failed += 1
                    logger.error(f"{self.name}: error reporting metric {e.metric_name}: {e.__cause__!r}")
                    continue

                for sample in samples:
                    self.statsd.send(self.prefix + sanitized + sample.suffix, sample.value)
                    report.samples_sent += 1
                report.metrics_reported += 1
