# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Out-of-band notification for critical error reports."""

from collections.abc import Callable
from datetime import datetime, timezone

from errorhub_logging import Logger
from errorhub_reporting import ErrorReporter

from .models import ErrorReport

CRITICAL_MESSAGE = "CRITICAL ERROR REPORTED"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CriticalErrorEscalator:
    """Logs a critical report and forwards it to the configured error reporter."""

    def __init__(
        self,
        logger: Logger,
        error_reporter: ErrorReporter | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.logger = logger
        self.error_reporter = error_reporter
        self.clock = clock

    def escalate(self, report: ErrorReport, error_id: str, fingerprint: str) -> None:
        context = {
            "error_id": error_id,
            "fingerprint": fingerprint,
            "message": report.message,
            "module": report.module,
            "category": report.category.value,
            "timestamp": self.clock().isoformat(),
        }
        self.logger.error(CRITICAL_MESSAGE, **context)
        if self.error_reporter is not None:
            self.error_reporter.capture_message(CRITICAL_MESSAGE, level="critical", context=context)
