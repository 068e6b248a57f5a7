"""MetricDispatcher - decomposition of metrics into StatsD samples.

Each metric kind becomes a fixed, ordered list of (suffix, value) samples
appended to the metric's sanitized name:

    counter    ""
    meter      "", .meanRate, .1MinuteRate, .5MinuteRate, .15MinuteRate
    histogram  .min, .max, .mean, .stddev,
               .median, .75percentile, .95percentile, .98percentile, .99percentile, .999percentile
    timer      meter samples followed by histogram samples (15 in total)
    gauge      "" when the value is a supported number, nothing otherwise

The order is part of the wire contract with downstream consumers.
"""

from typing import Any, List, NamedTuple, Optional

from metrics_statsd.services.metrics.instruments import Counter, Gauge, Histogram, Meter, Metric, Timer
from .errors import MetricReadFault
from .formatting import format_double, format_long, format_value


class Sample(NamedTuple):
    """One StatsD value; ``suffix`` is appended to the metric's sanitized name."""
    suffix: str
    value: str


class MetricDispatcher:
    """Visitor that turns one metric into its list of samples.

    Holds no state between calls. Float samples whose value cannot be written
    as a plain decimal (NaN, infinities) are left out.
    """

    def dispatch(self, sanitized_name: str, metric: Metric, epoch: Optional[int] = None) -> List[Sample]:
        """Decompose ``metric`` into samples.

        Args:
            sanitized_name: Flattened metric name, used for error reporting
            metric: Instrument to read
            epoch: Cycle timestamp, passed through to the processor unchanged

        Raises:
            MetricReadFault: reading the metric raised; nothing should be sent for it
        """
        try:
            return metric.process_with(self, sanitized_name, epoch)
        except Exception as e:
            raise MetricReadFault(sanitized_name) from e

    def process_counter(self, name: str, counter: Counter, context: Any) -> List[Sample]:
        return [Sample("", format_long(counter.count))]

    def process_meter(self, name: str, meter: Meter, context: Any) -> List[Sample]:
        return self._metered(meter)

    def process_histogram(self, name: str, histogram: Histogram, context: Any) -> List[Sample]:
        return self._summarized(histogram) + self._sampled(histogram)

    def process_timer(self, name: str, timer: Timer, context: Any) -> List[Sample]:
        return self._metered(timer) + self._summarized(timer) + self._sampled(timer)

    def process_gauge(self, name: str, gauge: Gauge, context: Any) -> List[Sample]:
        value = format_value(gauge.value)
        if value is None:
            return []
        return [Sample("", value)]

    def _metered(self, metered) -> List[Sample]:
        samples = [Sample("", format_long(metered.count))]
        samples += self._doubles(
            (".meanRate", metered.mean_rate),
            (".1MinuteRate", metered.one_minute_rate),
            (".5MinuteRate", metered.five_minute_rate),
            (".15MinuteRate", metered.fifteen_minute_rate),
        )
        return samples

    def _summarized(self, summarizable) -> List[Sample]:
        return self._doubles(
            (".min", summarizable.min),
            (".max", summarizable.max),
            (".mean", summarizable.mean),
            (".stddev", summarizable.std_dev),
        )

    def _sampled(self, sampling) -> List[Sample]:
        snapshot = sampling.snapshot()
        return self._doubles(
            (".median", snapshot.median),
            (".75percentile", snapshot.p75),
            (".95percentile", snapshot.p95),
            (".98percentile", snapshot.p98),
            (".99percentile", snapshot.p99),
            (".999percentile", snapshot.p999),
        )

    @staticmethod
    def _doubles(*pairs) -> List[Sample]:
        return [Sample(suffix, format_double(raw)) for suffix, raw in pairs]
