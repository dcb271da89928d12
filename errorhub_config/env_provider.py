# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Environment-backed configuration provider."""

import os
from typing import Any, Mapping, Optional

from .base import ConfigProvider, parse_bool


class EnvConfigProvider(ConfigProvider):
    """Configuration provider that reads from environment variables."""

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        self._environ = environ if environ is not None else os.environ

    def get(self, key: str, default: Any = None) -> Any:
        value = self._environ.get(key)
        # Treat empty env vars as unset so defaults apply
        if value is None or value == "":
            return default
        return value

    def get_bool(self, key: str, default: bool = False) -> bool:
        return parse_bool(self._environ.get(key), default)

    def get_int(self, key: str, default: int = 0) -> int:
        value = self._environ.get(key)
        if value is None or value == "":
            return default
        try:
            return int(value)
        except ValueError:
            return default
