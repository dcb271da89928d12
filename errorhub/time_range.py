# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Parsing of statistics window strings such as ``24h``, ``3d`` or ``1w``."""

import re
from datetime import datetime, timedelta, timezone

_TIME_RANGE = re.compile(r"(\d+)([hdw])", re.ASCII)

HOUR_MS = 60 * 60 * 1000
DEFAULT_TIME_RANGE = "24h"
DEFAULT_TIME_RANGE_MS = 24 * HOUR_MS
EARLIEST = datetime.min.replace(tzinfo=timezone.utc)

_UNIT_MS = {
    "h": HOUR_MS,
    "d": 24 * HOUR_MS,
    "w": 7 * 24 * HOUR_MS,
}


def parse_time_range(time_range: str | None) -> int:
    """Convert a window string to milliseconds.

    Anything that is not ``<digits><h|d|w>`` falls back to 24 hours.

    >>> parse_time_range("2h")
    7200000
    >>> parse_time_range("bogus")
    86400000
    """
    match = _TIME_RANGE.fullmatch(time_range or "")
    if match is None:
        return DEFAULT_TIME_RANGE_MS
    value, unit = match.groups()
    return int(value) * _UNIT_MS[unit]


def window_start(now: datetime, time_range: str | None) -> datetime:
    """Return the start of the window ending at ``now``.

    Windows reaching past year 1 are clamped to the earliest representable
    instant, so they simply cover every report.
    """
    try:
        return now - timedelta(milliseconds=parse_time_range(time_range))
    except OverflowError:
        return EARLIEST
