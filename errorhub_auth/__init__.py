# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""errorhub authentication adapter.

Bearer JWT validation, API key management and permission checks.
"""

__version__ = "0.1.0"

from .api_keys import API_KEYS_COLLECTION, ApiKeyStore, hash_api_key
from .authenticator import Authenticator
from .exceptions import AuthenticationError, PermissionDeniedError
from .jwt_manager import JWTManager
from .models import ADMIN_ROLE, Principal

__all__ = [
    "__version__",
    "ADMIN_ROLE",
    "API_KEYS_COLLECTION",
    "ApiKeyStore",
    "AuthenticationError",
    "Authenticator",
    "JWTManager",
    "PermissionDeniedError",
    "Principal",
    "hash_api_key",
]
