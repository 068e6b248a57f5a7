import os


class Settings:
    # API Settings
    PROJECT_NAME: str = "Metrics StatsD Reporter"
    VERSION: str = "1.0.0"
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", 8005))
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"

    # StatsD Reporter Settings
    STATSD_ENABLE_REPORTER: bool = os.getenv("STATSD_ENABLE_REPORTER", "true").lower() == "true"
    STATSD_HOST: str = os.getenv("STATSD_HOST", "localhost")
    STATSD_PORT: int = int(os.getenv("STATSD_PORT", 8125))
    STATSD_PREFIX: str = os.getenv("STATSD_PREFIX", "")  # empty means no prefix
    STATSD_PERIOD_SECONDS: float = float(os.getenv("STATSD_PERIOD_SECONDS", "10"))

    # Process/system gauges (psutil)
    STATSD_PROCESS_METRICS: bool = os.getenv("STATSD_PROCESS_METRICS", "true").lower() == "true"


settings = Settings()
