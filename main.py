"""
Metrics StatsD Reporter service

Hosts the default metrics registry and pushes it to a StatsD daemon on a
fixed period.

Environment Variables:
    STATSD_ENABLE_REPORTER: Start the StatsD reporter (default: true)
    STATSD_HOST: StatsD host (default: localhost)
    STATSD_PORT: StatsD UDP port (default: 8125)
    STATSD_PREFIX: Prefix prepended to every metric name (default: none)
    STATSD_PERIOD_SECONDS: Seconds between export cycles (default: 10)
    STATSD_PROCESS_METRICS: Export process/system gauges (default: true)
    HOST: Server host address (default: 0.0.0.0)
    PORT: Server port (default: 8005)
    DEBUG: Enable debug mode with auto-reload (default: false)

CLI Usage:
    python main.py

    # Report to a remote daemon every 30 seconds under "myservice."
    STATSD_HOST=statsd.internal STATSD_PREFIX=myservice STATSD_PERIOD_SECONDS=30 python main.py
"""

import uvicorn

from metrics_statsd.core.config import settings

if __name__ == "__main__":
    port = settings.PORT
    host = settings.HOST

    print(f"Starting {settings.PROJECT_NAME} on {host}:{port}")
    target = f"{settings.STATSD_HOST}:{settings.STATSD_PORT}"
    print(f"StatsD reporter: {target if settings.STATSD_ENABLE_REPORTER else 'disabled'}")

    reload_enabled = bool(settings.DEBUG)
    reload_dirs = None
    if reload_enabled:
        from pathlib import Path

        reload_dirs = [str(Path(__file__).resolve().parent / "metrics_statsd")]

    uvicorn.run(
        "metrics_statsd.app:app",
        host=host,
        port=port,
        reload=reload_enabled,
        reload_dirs=reload_dirs,
    )
