# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Silent error reporter implementation for testing."""

import threading
from typing import Any

from .error_reporter import ErrorReporter


class SilentErrorReporter(ErrorReporter):
    """Stores reports in memory so tests can assert on them.

    Escalations arrive from the dispatcher's worker thread, so appends and
    reads are guarded by a lock.
    """

    def __init__(self):
        self.reported_errors: list[dict[str, Any]] = []
        self.captured_messages: list[dict[str, Any]] = []
        self._lock = threading.Lock()

    def report(self, error: Exception, context: dict[str, Any] | None = None) -> None:
        with self._lock:
            self.reported_errors.append({
                "error": error,
                "error_type": type(error).__name__,
                "error_message": str(error),
                "context": context or {},
            })

    def capture_message(
        self,
        message: str,
        level: str = "error",
        context: dict[str, Any] | None = None
    ) -> None:
        with self._lock:
            self.captured_messages.append({
                "message": message,
                "level": level,
                "context": context or {},
            })

    def get_messages(self, level: str | None = None) -> list[dict[str, Any]]:
        """Get captured messages, optionally filtered by level."""
        with self._lock:
            if level:
                return [m for m in self.captured_messages if m["level"] == level]
            return list(self.captured_messages)

    def clear(self) -> None:
        """Clear all stored reports and messages."""
        with self._lock:
            self.reported_errors.clear()
            self.captured_messages.clear()
