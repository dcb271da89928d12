# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Sentry error reporter implementation."""

from typing import Any

import sentry_sdk

from .error_reporter import ErrorReporter

_SENTRY_LEVELS = {
    "debug": "debug",
    "info": "info",
    "warning": "warning",
    "error": "error",
    "critical": "fatal",
}


class SentryErrorReporter(ErrorReporter):
    """Forwards reports to Sentry.

    Example:
        reporter = SentryErrorReporter(dsn="https://...@sentry.io/...")
        reporter.capture_message("CRITICAL ERROR REPORTED", level="critical", context={"module": "auth"})
    """

    def __init__(self, dsn: str | None = None, environment: str | None = None):
        """Initialize Sentry error reporter.

        Args:
            dsn: Sentry DSN (Data Source Name) for the project
            environment: Environment name (production, staging, development)
        """
        self.dsn = dsn
        self.environment = environment
        self._initialized = False

        if dsn:
            sentry_sdk.init(dsn=dsn, environment=environment)
            self._initialized = True

    def _require_initialized(self) -> None:
        if not self._initialized:
            raise RuntimeError("Sentry reporter not initialized with a valid DSN")

    def report(self, error: Exception, context: dict[str, Any] | None = None) -> None:
        self._require_initialized()

        with sentry_sdk.new_scope() as scope:
            for key, value in (context or {}).items():
                scope.set_tag(key, str(value))
            if context:
                scope.set_context("error_context", context)
            sentry_sdk.capture_exception(error)

    def capture_message(
        self,
        message: str,
        level: str = "error",
        context: dict[str, Any] | None = None
    ) -> None:
        self._require_initialized()

        with sentry_sdk.new_scope() as scope:
            for key, value in (context or {}).items():
                scope.set_tag(key, str(value))
            if context:
                scope.set_context("message_context", context)
            sentry_sdk.capture_message(message, level=_SENTRY_LEVELS.get(level.lower(), "error"))
