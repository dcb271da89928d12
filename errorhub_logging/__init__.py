# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""errorhub logging adapter.

Structured, configurable logging shared by every errorhub component.

Example:
    >>> from errorhub_logging import create_logger
    >>> logger = create_logger(logger_type="stdout", level="INFO", name="errorhub")
    >>> logger.info("Service started", version="0.1.0")
    >>>
    >>> # Silent logger for tests
    >>> test_logger = create_logger(logger_type="silent")
    >>> test_logger.info("Test message")
    >>> test_logger.has_log("Test message")
    True
"""

__version__ = "0.1.0"

from .factory import create_logger
from .logger import Logger
from .silent_logger import SilentLogger
from .stdout_logger import StdoutLogger
from .uvicorn_config import create_uvicorn_log_config

__all__ = [
    "__version__",
    "Logger",
    "SilentLogger",
    "StdoutLogger",
    "create_logger",
    "create_uvicorn_log_config",
]
