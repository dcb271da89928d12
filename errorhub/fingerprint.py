# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Stable grouping keys for error reports.

Two reports that differ only in volatile details (ids, counters, hashes,
whitespace) produce the same fingerprint, so they are counted as one error.
"""

import re

from .models import ErrorReport

_UUID = re.compile(
    r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}",
    re.IGNORECASE,
)
# Hex runs of 8+, including all-digit and all-letter runs
_HEX = re.compile(r"[0-9a-f]{8,}", re.IGNORECASE)
_DIGITS = re.compile(r"[0-9]+")
_WHITESPACE = re.compile(r"\s+")


def normalize_message(message: str) -> str:
    """Replace volatile substrings with placeholders and canonicalize layout.

    UUIDs go first so their digit groups are not split into NUMBER tokens.

    >>> normalize_message("User 42 not found")
    'user number not found'
    """
    text = _UUID.sub("UUID", message)
    text = _HEX.sub("HASH", text)
    text = _DIGITS.sub("NUMBER", text)
    text = _WHITESPACE.sub(" ", text)
    return text.lower().strip()


def string_hash(text: str) -> int:
    """32-bit rolling hash (h = h*31 + unit) over UTF-16 code units, as a signed int."""
    h = 0
    data = text.encode("utf-16-le")
    for i in range(0, len(data), 2):
        h = (h * 31 + (data[i] | data[i + 1] << 8)) & 0xFFFFFFFF
    return h - 0x100000000 if h & 0x80000000 else h


def fingerprint(report: ErrorReport) -> str:
    """Return the grouping key for ``report``.

    A non-empty caller-supplied fingerprint wins. Otherwise the key is the
    hex hash of module, function, error code and normalized message.
    """
    if report.fingerprint:
        return report.fingerprint

    components = [
        report.module,
        report.function or "",
        report.error_code or "",
        normalize_message(report.message),
    ]
    text = ":".join(component for component in components if component)
    return format(abs(string_hash(text)), "x")
