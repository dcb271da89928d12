# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Uvicorn logging configuration for structured JSON logs."""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict


class JSONFormatter(logging.Formatter):
    """Formatter that renders uvicorn records in the StdoutLogger JSON shape."""

    def __init__(self, logger_name: str = "uvicorn"):
        super().__init__()
        self.logger_name = logger_name

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": self.logger_name,
            "message": record.getMessage(),
        }

        if getattr(record, "extra", None):
            log_entry["extra"] = record.extra

        return json.dumps(log_entry, default=str)


def create_uvicorn_log_config(service_name: str, log_level: str = "INFO") -> Dict[str, Any]:
    """Create Uvicorn logging configuration with structured JSON output.

    Access logs are emitted at DEBUG so health checks and high-volume error
    submissions do not flood the output.

    Args:
        service_name: Name of the service for log identification
        log_level: Default log level (DEBUG, INFO, WARNING, ERROR)

    Returns:
        Dictionary compatible with Uvicorn's log_config parameter

    Example:
        >>> log_config = create_uvicorn_log_config("error-reporting", "INFO")
        >>> uvicorn.run(app, host="0.0.0.0", port=8081, log_config=log_config)
    """
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": JSONFormatter,
                "logger_name": service_name,
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "json",
                "stream": "ext://sys.stdout",
            },
        },
        "loggers": {
            "uvicorn": {
                "handlers": ["console"],
                "level": log_level,
                "propagate": False,
            },
            "uvicorn.error": {
                "handlers": ["console"],
                "level": log_level,
                "propagate": False,
            },
            "uvicorn.access": {
                "handlers": ["console"],
                "level": "DEBUG",
                "propagate": False,
            },
        },
    }
