"""Periodic scheduling of StatsD export cycles.

This module runs a StatsDReporter as an asyncio background task, following
the same start/stop pattern as the other background services. Each cycle
runs in a worker thread and is awaited before the next is scheduled, so
cycles never overlap. Ticks missed while a slow cycle was running are
skipped rather than queued.
"""

import asyncio
import math
from typing import Optional

from metrics_statsd.core.logging_config import get_logger
from .reporter import StatsDReporter

logger = get_logger("statsd_scheduler")

# Module-level task, stop event and the reporter being driven
_poll_task: Optional[asyncio.Task] = None
_stop_event: Optional[asyncio.Event] = None
_reporter: Optional[StatsDReporter] = None
_period_seconds: float = 0.0


async def _reporter_poll_loop(reporter: StatsDReporter, period_seconds: float, stop_event: asyncio.Event) -> None:
    """Background loop that runs an export cycle every ``period_seconds``.

    Args:
        reporter: Reporter whose run() is invoked each tick
        period_seconds: Interval between cycle starts
        stop_event: Event to signal shutdown
    """
    loop = asyncio.get_running_loop()
    next_run = loop.time()
    logger.info(f"{reporter.name} started, reporting every {period_seconds}s")

    while not stop_event.is_set():
        try:
            await asyncio.to_thread(reporter.run)
        except Exception as e:
            logger.error(f"Error in {reporter.name} poll loop: {e}")

        next_run += period_seconds
        now = loop.time()
        if next_run < now:
            missed = math.ceil((now - next_run) / period_seconds)
            next_run += missed * period_seconds
            logger.warning(f"{reporter.name}: export cycle overran its period, skipped {missed} tick(s)")

        try:
            # Wait until the next tick or until stop event is set
            await asyncio.wait_for(stop_event.wait(), timeout=next_run - now)
            break
        except asyncio.TimeoutError:
            continue

    logger.info(f"{reporter.name} stopped")


def start_reporter(reporter: StatsDReporter, period_seconds: float) -> None:
    """Start the background reporting task.

    Args:
        reporter: Reporter to drive
        period_seconds: Interval between export cycles, must be positive
    """
    global _poll_task, _stop_event, _reporter, _period_seconds

    if period_seconds <= 0:
        raise ValueError(f"period_seconds must be positive, got {period_seconds}")

    if _poll_task is not None and not _poll_task.done():
        logger.warning("StatsD reporter already running")
        return

    _stop_event = asyncio.Event()
    _reporter = reporter
    _period_seconds = period_seconds
    _poll_task = asyncio.create_task(
        _reporter_poll_loop(reporter, period_seconds, _stop_event), name=reporter.name
    )
    logger.info("StatsD reporter task created")


def stop_reporter() -> None:
    """Stop the background reporting task."""
    global _poll_task, _stop_event, _reporter

    if _stop_event:
        _stop_event.set()

    if _poll_task and not _poll_task.done():
        _poll_task.cancel()

    _poll_task = None
    _stop_event = None
    _reporter = None
    logger.info("StatsD reporter stop requested")


def is_reporter_running() -> bool:
    return _poll_task is not None and not _poll_task.done()


def get_active_reporter() -> Optional[StatsDReporter]:
    """Reporter driven by the running task, if any."""
    return _reporter if is_reporter_running() else None


def get_period_seconds() -> float:
    return _period_seconds
