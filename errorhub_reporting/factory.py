# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Factory for error reporters."""

from .error_reporter import ErrorReporter


def create_error_reporter(
    reporter_type: str = "console",
    dsn: str | None = None,
    environment: str | None = None,
    logger_name: str | None = None,
) -> ErrorReporter:
    """Create an error reporter.

    Args:
        reporter_type: "console", "silent" or "sentry"
        dsn: Sentry DSN (sentry only, required)
        environment: Sentry environment name (sentry only)
        logger_name: Logger to write to (console only)

    Raises:
        ValueError: If the type is unknown or sentry is chosen without a DSN
    """
    if reporter_type == "console":
        from .console_error_reporter import ConsoleErrorReporter
        return ConsoleErrorReporter(logger_name=logger_name)
    elif reporter_type == "silent":
        from .silent_error_reporter import SilentErrorReporter
        return SilentErrorReporter()
    elif reporter_type == "sentry":
        if not dsn:
            raise ValueError("sentry_dsn is required when error_reporter_type is 'sentry'")
        from .sentry_error_reporter import SentryErrorReporter
        return SentryErrorReporter(dsn=dsn, environment=environment)
    raise ValueError(
        f"Unknown reporter_type: {reporter_type}. Must be one of: console, silent, sentry"
    )
