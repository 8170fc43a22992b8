"""Logging configuration."""

import logging
import logging.config
from typing import Any

from school_ledger.core.config import settings


def build_logging_config(level: str | None = None, json_output: bool | None = None) -> dict[str, Any]:
    """Build the dictConfig used by the application and the engine loggers."""
    level = (level or settings.LOG_LEVEL).upper()
    if json_output is None:
        json_output = settings.LOG_JSON

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            },
            "json": {
                "()": "pythonjsonlogger.jsonlogger.JsonFormatter",
                "format": "%(asctime)s %(levelname)s %(name)s %(message)s",
            },
        },
        "handlers": {
            "console": {
                "level": "DEBUG" if settings.DEBUG else level,
                "class": "logging.StreamHandler",
                "formatter": "json" if json_output else "standard",
            },
        },
        "loggers": {
            "school_ledger": {
                "handlers": ["console"],
                "level": level,
                "propagate": False,
            },
            "uvicorn": {
                "handlers": ["console"],
                "level": "INFO",
                "propagate": False,
            },
        },
    }


def setup_logging(level: str | None = None, json_output: bool | None = None) -> logging.Logger:
    """Configure application logging."""
    logging.config.dictConfig(build_logging_config(level, json_output))
    logger = logging.getLogger("school_ledger")
    logger.debug("Logging initialized with level: %s", level or settings.LOG_LEVEL)
    return logger
