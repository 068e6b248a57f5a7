"""Metrics registry and StatsD reporter REST endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from metrics_statsd.core.config import settings
from metrics_statsd.services.metrics.instance import get_metrics_registry
from metrics_statsd.services.metrics.models import (
    CycleReportModel,
    MetricsListModel,
    ReporterStatusModel,
)
from metrics_statsd.services.metrics.registry import MetricsRegistry
from metrics_statsd.services.statsd import scheduler
from metrics_statsd.services.statsd.reporter import StatsDReporter

router = APIRouter(prefix="/metrics", tags=["metrics"])


def get_registry() -> MetricsRegistry:
    """FastAPI dependency for metrics registry injection."""
    return get_metrics_registry()


def get_reporter() -> Optional[StatsDReporter]:
    """FastAPI dependency for the scheduled reporter, None when not running."""
    return scheduler.get_active_reporter()


@router.get("/", response_model=MetricsListModel)
async def list_metrics(registry: MetricsRegistry = Depends(get_registry)):
    """List every metric in the registry with its kind."""
    return registry.snapshot()


@router.get("/reporter", response_model=ReporterStatusModel)
async def get_reporter_status(
    registry: MetricsRegistry = Depends(get_registry),
    reporter: Optional[StatsDReporter] = Depends(get_reporter),
):
    """Get StatsD reporter status.

    Always returns 200, even when the reporter is disabled or stopped.
    """
    last_cycle = None
    if reporter is not None and reporter.last_cycle is not None:
        last_cycle = CycleReportModel.model_validate(reporter.last_cycle)

    return ReporterStatusModel(
        enabled=settings.STATSD_ENABLE_REPORTER,
        running=reporter is not None,
        host=settings.STATSD_HOST,
        port=settings.STATSD_PORT,
        prefix=settings.STATSD_PREFIX,
        period_seconds=scheduler.get_period_seconds() if reporter is not None else settings.STATSD_PERIOD_SECONDS,
        cycles_total=reporter.cycles_total if reporter is not None else 0,
        send_failures=getattr(reporter.statsd, "failures", 0) if reporter is not None else 0,
        last_cycle=last_cycle,
        metric_count=len(registry),
        version=settings.VERSION,
    )


@router.post("/reporter/run", response_model=CycleReportModel)
def run_export_cycle(reporter: Optional[StatsDReporter] = Depends(get_reporter)):
    """Run one export cycle immediately.

    Runs in the FastAPI threadpool.

    Raises:
        HTTPException: 503 if no reporter is running, 409 if a cycle is already in progress
    """
    if reporter is None:
        raise HTTPException(
            status_code=503,
            detail="StatsD reporter is not running. Set STATSD_ENABLE_REPORTER=true to enable."
        )

    report = reporter.run()
    if report is None:
        raise HTTPException(status_code=409, detail="An export cycle is already in progress.")
    return CycleReportModel.model_validate(report)
