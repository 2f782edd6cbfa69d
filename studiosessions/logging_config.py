"""
Logging setup for the API process.

Probe traffic (/health, /healthz) is dropped from the uvicorn access log so
real requests stay readable.
"""

import logging
from typing import Any, Dict, Iterable

PROBE_PATHS = ("/health",)


class HealthCheckFilter(logging.Filter):
    """Drops uvicorn access records for GET probes."""

    def __init__(self, paths: Iterable[str] = PROBE_PATHS):
        super().__init__()
        self.paths = tuple(paths)

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name != "uvicorn.access":
            return True
        message = record.getMessage()
        return not ("GET" in message and any(path in message for path in self.paths))


def _logger(handler: str, level: str) -> Dict[str, Any]:
    return {"handlers": [handler], "level": level, "propagate": False}


def get_logging_config(level: str = "INFO") -> Dict[str, Any]:
    """Build a dictConfig mapping. The studiosessions loggers follow level."""
    level = level.upper()
    stdout = "ext://sys.stdout"
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "health_check_filter": {"()": HealthCheckFilter},
        },
        "formatters": {
            "default": {"format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"},
            "access": {"format": "%(message)s"},
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": stdout,
            },
            "access": {
                "class": "logging.StreamHandler",
                "formatter": "access",
                "stream": stdout,
                "filters": ["health_check_filter"],
            },
        },
        "loggers": {
            "uvicorn": _logger("default", "INFO"),
            "uvicorn.error": _logger("default", "INFO"),
            "uvicorn.access": _logger("access", "INFO"),
            # SQL echo goes through DATABASE_ECHO, not the log level
            "sqlalchemy.engine": _logger("default", "WARNING"),
            "studiosessions": _logger("default", level),
        },
        "root": {"level": level, "handlers": ["default"]},
    }
