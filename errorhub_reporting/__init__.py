# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""errorhub error reporting adapter.

Sinks used to escalate critical error reports out of band.
"""

__version__ = "0.1.0"

from .console_error_reporter import ConsoleErrorReporter
from .error_reporter import ErrorReporter
from .factory import create_error_reporter
from .silent_error_reporter import SilentErrorReporter

__all__ = [
    "__version__",
    "ErrorReporter",
    "ConsoleErrorReporter",
    "SilentErrorReporter",
    "create_error_reporter",
]
