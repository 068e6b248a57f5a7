from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from metrics_statsd.api.v1 import router as api_router
from metrics_statsd.core.config import settings
from metrics_statsd.core.logging_config import get_logger
from metrics_statsd.middleware import RequestTimingMiddleware
from metrics_statsd.services.metrics.instance import get_metrics_registry
from metrics_statsd.services.metrics.system_probe import register_process_gauges, unregister_process_gauges
from metrics_statsd.services.statsd.reporter import StatsDReporter
from metrics_statsd.services.statsd.scheduler import start_reporter, stop_reporter

logger = get_logger("app")


@asynccontextmanager
async def lifespan(_: FastAPI):
    # Startup
    registry = get_metrics_registry()
    gauge_names = []
    if settings.STATSD_PROCESS_METRICS:
        gauge_names = register_process_gauges(registry)

    if settings.STATSD_ENABLE_REPORTER:
        reporter = StatsDReporter.from_settings(settings, registry=registry)
        start_reporter(reporter, settings.STATSD_PERIOD_SECONDS)
    else:
        logger.info("StatsD reporter disabled (STATSD_ENABLE_REPORTER=false)")

    yield

    # Shutdown
    stop_reporter()
    unregister_process_gauges(registry, gauge_names)


app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Periodic StatsD export of in-process metrics",
    version=settings.VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestTimingMiddleware)

app.include_router(api_router)
