# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Shared test helpers for building error report payloads and controlling time.

Usage:
    from tests.fixtures import create_valid_report, FakeClock

    payload = create_valid_report(severity="critical")
"""

from .report_fixtures import (  # noqa: F401
    TEST_AUDIENCE,
    TEST_SECRET,
    FakeClock,
    FakeMonotonic,
    create_valid_report,
    make_token,
)
