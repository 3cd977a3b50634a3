"""
Logging setup for the rpcsession server.

Uvicorn access lines for health checks are dropped; everything else,
including session expiry and push failures, goes to stdout.
"""

import logging
import logging.config
from typing import Any, Dict, Iterable

ACCESS_LOGGER = "uvicorn.access"
HEALTH_PATHS = ("/healthz",)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class HealthCheckFilter(logging.Filter):
    """Drop access-log records for GET requests to health endpoints."""

    def __init__(self, paths: Iterable[str] = HEALTH_PATHS):
        super().__init__()
        self.markers = tuple(f"GET {path}" for path in paths)

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name != ACCESS_LOGGER:
            return True
        message = record.getMessage()
        return not any(marker in message for marker in self.markers)


def _logger(handler: str, level: str) -> Dict[str, Any]:
    return {"handlers": [handler], "level": level, "propagate": False}


def get_logging_config(level: str = "INFO", health_paths: Iterable[str] = HEALTH_PATHS) -> Dict[str, Any]:
    """
    Build a dictConfig mapping for the server and uvicorn.

    Args:
        level: Level name applied to every configured logger (any case)
        health_paths: Paths whose GET access lines are suppressed

    Returns:
        Mapping accepted by ``logging.config.dictConfig`` and ``uvicorn.run``
    """
    level = level.upper()

    loggers = {name: _logger("default", level) for name in ("uvicorn", "uvicorn.error", "rpcsession")}
    loggers[ACCESS_LOGGER] = _logger("access", level)

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "health_check": {"()": HealthCheckFilter, "paths": list(health_paths)},
        },
        "formatters": {
            "default": {"format": LOG_FORMAT},
            "access": {"format": "%(message)s"},
        },
        "handlers": {
            "default": {"class": "logging.StreamHandler", "formatter": "default", "stream": "ext://sys.stdout"},
            "access": {
                "class": "logging.StreamHandler",
                "formatter": "access",
                "stream": "ext://sys.stdout",
                "filters": ["health_check"],
            },
        },
        "loggers": loggers,
        "root": {"level": level, "handlers": ["default"]},
    }


def configure_logging(level: str = "INFO") -> None:
    logging.config.dictConfig(get_logging_config(level))
