# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Authentication exceptions."""


class AuthenticationError(Exception):
    """Raised when credentials are missing, malformed, expired or unknown."""
    pass


class PermissionDeniedError(Exception):
    """Raised when an authenticated principal lacks a required permission."""

    def __init__(self, message: str, required_permission: str | None = None):
        super().__init__(message)
        self.required_permission = required_permission
