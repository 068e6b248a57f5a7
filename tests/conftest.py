import pytest

from metrics_statsd.services.metrics.instruments import Clock
from metrics_statsd.services.metrics.registry import MetricsRegistry


class FakeClock(Clock):
    """Manually advanced clock for meters, timers and reporters."""

    def __init__(self, tick: float = 0.0, epoch: int = 1_700_000_000):
        self.now = tick
        self.epoch = epoch

    def tick(self) -> float:
        return self.now

    def time(self) -> int:
        return self.epoch

    def advance(self, seconds: float) -> None:
        self.now += seconds
        self.epoch += int(seconds)


class RecordingStatsD:
    """In-memory transport that records what the reporter does with it."""

    def __init__(self):
        self.sent = []
        self.connect_calls = 0
        self.close_calls = 0
        self.connected = False
        self.failures = 0
        self.connect_error = None
        self.close_error = None

    def connect(self) -> None:
        self.connect_calls += 1
        if self.connect_error is not None:
            raise self.connect_error
        self.connected = True

    def send(self, name: str, value: str) -> None:
        self.sent.append((name, value))

    def close(self) -> None:
        self.close_calls += 1
        self.connected = False
        if self.close_error is not None:
            raise self.close_error


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def registry(fake_clock):
    return MetricsRegistry(clock=fake_clock)


@pytest.fixture
def statsd():
    return RecordingStatsD()
