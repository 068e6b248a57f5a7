import os
import logging
from logging.handlers import RotatingFileHandler

LOG_DIR = os.getenv(
    "LOG_DIR",
    os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "config", "logs"),
)
LOG_FILE = os.path.join(LOG_DIR, "metrics_statsd.log")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# All package loggers hang off this one so the reporter can be silenced as a unit
ROOT_LOGGER_NAME = "metrics_statsd"

os.makedirs(LOG_DIR, exist_ok=True)

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format=LOG_FORMAT,
    datefmt=DATE_FORMAT,
    handlers=[
        logging.StreamHandler(),
        RotatingFileHandler(
            LOG_FILE,
            maxBytes=(10 * 1024 * 1024),   # 10MB per file
            backupCount=7,                 # Last 7 rotated logs kept
            encoding="utf-8"
        )
    ]
)


def get_logger(name: str) -> logging.Logger:
    """Return a logger namespaced under the package root logger.

    Accepts either a dotted module path (``metrics_statsd.services.statsd.reporter``)
    or a short component name (``statsd_scheduler``).
    """
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
