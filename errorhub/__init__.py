# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""
errorhub - error reporting and aggregation service.

Ingests error events from many callers, groups them by fingerprint,
keeps rolling aggregates and serves cached statistics over HTTP.
"""

__version__ = "0.1.0"
