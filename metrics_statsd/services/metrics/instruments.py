"""In-process metric instruments.

Five kinds of metric live in a MetricsRegistry:

    Counter    - an integer that is incremented and decremented
    Meter      - event count plus mean and exponentially-weighted 1/5/15 minute rates
    Histogram  - streaming summary (min/max/mean/stddev) plus a sampled distribution
    Timer      - a Meter of events that also keeps a Histogram of their durations (ms)
    Gauge      - a callable read on demand

Every instrument implements ``process_with(processor, name, context)`` which
calls exactly one ``process_<kind>`` method of a MetricProcessor. Exporters
walk the registry through this hook instead of inspecting types.
"""

import math
import threading
import time
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional, Protocol, Union

import numpy as np


class Clock:
    """Time source used by meters, timers and reporters."""

    def tick(self) -> float:
        """Monotonic time in seconds, for measuring intervals."""
        return time.monotonic()

    def time(self) -> int:
        """Wall-clock epoch time in whole seconds."""
        return int(time.time())


DEFAULT_CLOCK = Clock()


class MetricProcessor(Protocol):
    """Visitor with one method per metric kind."""

    def process_counter(self, name: str, counter: "Counter", context: Any) -> Any:
        ...

    def process_meter(self, name: str, meter: "Meter", context: Any) -> Any:
        ...

    def process_histogram(self, name: str, histogram: "Histogram", context: Any) -> Any:
        ...

    def process_timer(self, name: str, timer: "Timer", context: Any) -> Any:
        ...

    def process_gauge(self, name: str, gauge: "Gauge", context: Any) -> Any:
        ...


class Counter:
    """Thread-safe integer counter."""

    def __init__(self):
        self._count = 0
        self._lock = threading.Lock()

    def inc(self, n: int = 1) -> None:
        with self._lock:
            self._count += n

    def dec(self, n: int = 1) -> None:
        with self._lock:
            self._count -= n

    def clear(self) -> None:
        with self._lock:
            self._count = 0

    @property
    def count(self) -> int:
        return self._count

    def process_with(self, processor: MetricProcessor, name: str, context: Any) -> Any:
        return processor.process_counter(name, self, context)


# Meter rates are folded into the moving averages every TICK_INTERVAL seconds
TICK_INTERVAL = 5.0


class EWMA:
    """Exponentially-weighted moving average of an event rate (events/second)."""

    def __init__(self, alpha: float, interval: float = TICK_INTERVAL):
        self._alpha = alpha
        self._interval = interval
        self._uncounted = 0
        self._rate = 0.0
        self._initialized = False

    @classmethod
    def for_minutes(cls, minutes: int) -> "EWMA":
        return cls(1.0 - math.exp(-TICK_INTERVAL / 60.0 / minutes))

    def update(self, n: int) -> None:
        self._uncounted += n

    def tick(self) -> None:
        count = self._uncounted
        self._uncounted = 0
        instant_rate = count / self._interval
        if self._initialized:
            self._rate += self._alpha * (instant_rate - self._rate)
        else:
            self._rate = instant_rate
            self._initialized = True

    @property
    def rate(self) -> float:
        return self._rate


class Meter:
    """Marks events and reports their throughput.

    The moving averages are ticked lazily: every read or mark first catches
    up on any whole tick intervals that elapsed since the previous one.
    """

    def __init__(self, clock: Optional[Clock] = None):
        self._clock = clock or DEFAULT_CLOCK
        self._lock = threading.Lock()
        self._m1 = EWMA.for_minutes(1)
        self._m5 = EWMA.for_minutes(5)
        self._m15 = EWMA.for_minutes(15)
        self._count = 0
        self._start_time = self._clock.tick()
        self._last_tick = self._start_time

    def mark(self, n: int = 1) -> None:
        with self._lock:
            self._tick_if_necessary()
            self._count += n
            self._m1.update(n)
            self._m5.update(n)
            self._m15.update(n)

    def _tick_if_necessary(self) -> None:
        now = self._clock.tick()
        age = now - self._last_tick
        if age > TICK_INTERVAL:
            self._last_tick = now - (age % TICK_INTERVAL)
            for _ in range(int(age // TICK_INTERVAL)):
                self._m1.tick()
                self._m5.tick()
                self._m15.tick()

    @property
    def count(self) -> int:
        return self._count

    @property
    def mean_rate(self) -> float:
        with self._lock:
            if self._count == 0:
                return 0.0
            elapsed = self._clock.tick() - self._start_time
            if elapsed <= 0:
                return 0.0
            return self._count / elapsed

    @property
    def one_minute_rate(self) -> float:
        with self._lock:
            self._tick_if_necessary()
            return self._m1.rate

    @property
    def five_minute_rate(self) -> float:
        with self._lock:
            self._tick_if_necessary()
            return self._m5.rate

    @property
    def fifteen_minute_rate(self) -> float:
        with self._lock:
            self._tick_if_necessary()
            return self._m15.rate

    def process_with(self, processor: MetricProcessor, name: str, context: Any) -> Any:
        return processor.process_meter(name, self, context)


class Snapshot:
    """Sorted point-in-time copy of a sampled distribution."""

    def __init__(self, values):
        self._values = np.sort(np.asarray(values, dtype=np.float64))

    def __len__(self) -> int:
        return int(self._values.size)

    @property
    def values(self) -> np.ndarray:
        return self._values

    def get_value(self, quantile: float) -> float:
        """Value at ``quantile`` using the q*(n+1) interpolation rule.

        Positions before the first or after the last sample clamp to the
        extremes. An empty snapshot reports 0.0.
        """
        if not 0.0 <= quantile <= 1.0 or math.isnan(quantile):
            raise ValueError(f"{quantile} is not in [0..1]")
        if self._values.size == 0:
            return 0.0
        return float(np.quantile(self._values, quantile, method="weibull"))

    @property
    def median(self) -> float:
        return self.get_value(0.5)

    @property
    def p75(self) -> float:
        return self.get_value(0.75)

    @property
    def p95(self) -> float:
        return self.get_value(0.95)

    @property
    def p98(self) -> float:
        return self.get_value(0.98)

    @property
    def p99(self) -> float:
        return self.get_value(0.99)

    @property
    def p999(self) -> float:
        return self.get_value(0.999)


DEFAULT_SAMPLE_SIZE = 1028


class UniformReservoir:
    """Fixed-size uniform random sample of a stream (Vitter's algorithm R)."""

    def __init__(self, size: int = DEFAULT_SAMPLE_SIZE, rng: Optional[np.random.Generator] = None):
        self._values = np.zeros(size, dtype=np.float64)
        self._count = 0
        self._rng = rng or np.random.default_rng()

    def __len__(self) -> int:
        return min(self._count, self._values.size)

    def update(self, value: float) -> None:
        self._count += 1
        if self._count <= self._values.size:
            self._values[self._count - 1] = value
        else:
            r = int(self._rng.integers(0, self._count))
            if r < self._values.size:
                self._values[r] = value

    def clear(self) -> None:
        self._count = 0

    def snapshot(self) -> Snapshot:
        return Snapshot(self._values[:len(self)].copy())


class Histogram:
    """Distribution of values with a streaming summary and a sampled snapshot.

    min/max/mean/std_dev are exact over every recorded value (Welford's
    algorithm); percentiles come from the reservoir sample.
    """

    def __init__(self, reservoir: Optional[UniformReservoir] = None):
        self._reservoir = reservoir if reservoir is not None else UniformReservoir()
        self._lock = threading.Lock()
        self._clear_stats()

    def _clear_stats(self) -> None:
        self._count = 0
        self._min = math.inf
        self._max = -math.inf
        self._mean = 0.0
        self._m2 = 0.0

    def update(self, value: Union[int, float]) -> None:
        value = float(value)
        with self._lock:
            self._count += 1
            self._min = min(self._min, value)
            self._max = max(self._max, value)
            delta = value - self._mean
            self._mean += delta / self._count
            self._m2 += delta * (value - self._mean)
            self._reservoir.update(value)

    def clear(self) -> None:
        with self._lock:
            self._clear_stats()
            self._reservoir.clear()

    @property
    def count(self) -> int:
        return self._count

    @property
    def min(self) -> float:
        return self._min if self._count > 0 else 0.0

    @property
    def max(self) -> float:
        return self._max if self._count > 0 else 0.0

    @property
    def mean(self) -> float:
        return self._mean if self._count > 0 else 0.0

    @property
    def std_dev(self) -> float:
        # Sample standard deviation
        if self._count <= 1:
            return 0.0
        return math.sqrt(self._m2 / (self._count - 1))

    def snapshot(self) -> Snapshot:
        with self._lock:
            return self._reservoir.snapshot()

    def process_with(self, processor: MetricProcessor, name: str, context: Any) -> Any:
        return processor.process_histogram(name, self, context)


class Timer:
    """Meter of timed events plus a Histogram of their durations in milliseconds.

    Usage example:
    ```python
    with registry.timer(MetricName("http", "requests", "index")).time():
        handle_request()
    ```
    """

    def __init__(self, clock: Optional[Clock] = None, reservoir: Optional[UniformReservoir] = None):
        self._clock = clock or DEFAULT_CLOCK
        self._meter = Meter(self._clock)
        self._histogram = Histogram(reservoir)

    def update(self, duration_ms: float) -> None:
        """Record one event that took ``duration_ms`` milliseconds. Negative durations are ignored."""
        if duration_ms < 0:
            return
        self._histogram.update(duration_ms)
        self._meter.mark()

    @contextmanager
    def time(self) -> Iterator[None]:
        start = self._clock.tick()
        try:
            yield
        finally:
            self.update((self._clock.tick() - start) * 1000.0)

    @property
    def count(self) -> int:
        return self._histogram.count

    @property
    def mean_rate(self) -> float:
        return self._meter.mean_rate

    @property
    def one_minute_rate(self) -> float:
        return self._meter.one_minute_rate

    @property
    def five_minute_rate(self) -> float:
        return self._meter.five_minute_rate

    @property
    def fifteen_minute_rate(self) -> float:
        return self._meter.fifteen_minute_rate

    @property
    def min(self) -> float:
        return self._histogram.min

    @property
    def max(self) -> float:
        return self._histogram.max

    @property
    def mean(self) -> float:
        return self._histogram.mean

    @property
    def std_dev(self) -> float:
        return self._histogram.std_dev

    def snapshot(self) -> Snapshot:
        return self._histogram.snapshot()

    def process_with(self, processor: MetricProcessor, name: str, context: Any) -> Any:
        return processor.process_timer(name, self, context)


class Gauge:
    """Instantaneous value produced by a callable each time it is read.

    The callable may return any object; exporters decide which kinds they
    can represent.
    """

    def __init__(self, value_fn: Callable[[], Any]):
        self._value_fn = value_fn

    @property
    def value(self) -> Any:
        return self._value_fn()

    def process_with(self, processor: MetricProcessor, name: str, context: Any) -> Any:
        return processor.process_gauge(name, self, context)


Metric = Union[Counter, Meter, Histogram, Timer, Gauge]

METRIC_KINDS = {
    Counter: "counter",
    Meter: "meter",
    Histogram: "histogram",
    Timer: "timer",
    Gauge: "gauge",
}


def metric_kind(metric: Metric) -> str:
    """Short lowercase kind label used in API listings."""
    return METRIC_KINDS.get(type(metric), "unknown")
