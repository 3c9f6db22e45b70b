# crowdvision/utils/logger.py
"""
Centralised logging configuration for the entire application.
Console + rotating crowdvision.log in LOG_DIR (default <repo>/logs/), plus
alerts.log: an audit trail holding only the records the alert engine emits.
"""

import logging
import os
from logging.handlers import RotatingFileHandler

from crowdvision.config import settings

LOG_LEVEL = settings.LOG_LEVEL.upper()
LOG_DIR = settings.LOG_DIR or os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), "logs")
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
ALERT_LOGGER = "crowdvision.services.alert_service"

os.makedirs(LOG_DIR, exist_ok=True)

_configured = False


class _AlertAuditFilter(logging.Filter):
    """Passes emitted alerts only, not the engine's debug chatter."""

    def filter(self, record):
        return record.name == ALERT_LOGGER and record.levelno >= logging.WARNING


def _rotating(filename, level, fmt):
    handler = RotatingFileHandler(
        filename=os.path.join(LOG_DIR, filename),
        maxBytes=5 * 1024 * 1024,
        backupCount=10,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(fmt)
    return handler


def _configure_root_logger():
    global _configured
    if _configured:
        return
    _configured = True

    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    console = logging.StreamHandler()
    console.setLevel(LOG_LEVEL)
    console.setFormatter(fmt)

    # 10 × 5MB per file
    alerts = _rotating("alerts.log", logging.WARNING, fmt)
    alerts.addFilter(_AlertAuditFilter())

    root = logging.getLogger()
    root.setLevel(LOG_LEVEL)
    root.addHandler(console)
    root.addHandler(_rotating("crowdvision.log", LOG_LEVEL, fmt))
    root.addHandler(alerts)

    # httpx logs every inference request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a named logger. Call this at the top of every module."""
    _configure_root_logger()
    return logging.getLogger(name)
