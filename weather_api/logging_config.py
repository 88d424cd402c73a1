"""
Logging configuration for the API process.

Access-log lines for health probes are dropped, and authentication keys
that travel in a request path are masked before any handler writes them.
"""

import logging
import re
from typing import Any, Dict

# Loggers that write through the default handler; uvicorn.access has its own
APP_LOGGERS = ("uvicorn", "uvicorn.error", "weather_api")

HEALTH_PATHS = ("/health", "/healthz")

# GET /users/key/{authenticationKey}
KEY_IN_PATH = re.compile(r"(/users/key/)([A-Za-z0-9_\-]{8})[A-Za-z0-9_\-]*")


class HealthCheckFilter(logging.Filter):
    """Drop uvicorn access lines for GET requests to the health endpoints."""

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name != "uvicorn.access":
            return True
        message = record.getMessage()
        if "GET" not in message:
            return True
        return not any(f"{path} " in message for path in HEALTH_PATHS)


class KeyRedactionFilter(logging.Filter):
    """Keep only the first 8 characters of an authentication key in a path."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = KEY_IN_PATH.sub(r"\1\2...", message)
        if redacted != message:
            record.msg = redacted
            record.args = ()
        return True


def get_logging_config(level: str = "INFO") -> Dict[str, Any]:
    """Build the dictConfig mapping for the given log level."""
    loggers = {
        name: {"handlers": ["default"], "level": level, "propagate": False}
        for name in APP_LOGGERS
    }
    loggers["uvicorn.access"] = {"handlers": ["access"], "level": level, "propagate": False}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "health_check_filter": {"()": HealthCheckFilter},
            "key_redaction_filter": {"()": KeyRedactionFilter},
        },
        "formatters": {
            "default": {"format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"},
            "access": {"format": "%(message)s"},
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stdout",
                "filters": ["key_redaction_filter"],
            },
            "access": {
                "class": "logging.StreamHandler",
                "formatter": "access",
                "stream": "ext://sys.stdout",
                "filters": ["health_check_filter", "key_redaction_filter"],
            },
        },
        "loggers": loggers,
        "root": {"level": level, "handlers": ["default"]},
    }
