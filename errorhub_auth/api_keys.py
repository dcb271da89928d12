# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""API keys stored as SHA-256 digests in the document store."""

import hashlib
import hmac
import logging
import uuid
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

from errorhub_storage import DocumentStore

from .exceptions import AuthenticationError
from .models import Principal

logger = logging.getLogger(__name__)

API_KEYS_COLLECTION = "api_keys"
KEY_PREFIX_LENGTH = 8


def hash_api_key(api_key: str) -> str:
    """Return the hex SHA-256 digest stored in place of the key."""
    return hashlib.sha256(api_key.encode("utf-8")).hexdigest()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ApiKeyStore:
    """Issues, verifies and revokes API keys.

    The plaintext key is returned once by ``create_api_key`` and never stored.
    """

    def __init__(self, store: DocumentStore, clock: Callable[[], datetime] = _utcnow):
        self.store = store
        self.clock = clock

    def create_api_key(
        self,
        name: str,
        user_id: str,
        permissions: list[str],
        expires_in_days: int | None = None,
    ) -> tuple[str, dict[str, Any]]:
        """Create a new API key.

        Args:
            name: Human-readable label
            user_id: Owner of the key
            permissions: Permissions granted to callers presenting the key
            expires_in_days: Lifetime in days, or None for no expiry

        Returns:
            Tuple of (plaintext key, stored record without the hash)
        """
        api_key = uuid.uuid4().hex + uuid.uuid4().hex
        now = self.clock()
        record = {
            "_id": str(uuid.uuid4()),
            "key_hash": hash_api_key(api_key),
            "key_prefix": api_key[:KEY_PREFIX_LENGTH],
            "name": name or "API Key",
            "user_id": user_id,
            "permissions": list(permissions),
            "expires_at": now + timedelta(days=expires_in_days) if expires_in_days else None,
            "revoked": False,
            "created_at": now,
        }
        self.store.insert_document(API_KEYS_COLLECTION, record)
        logger.info(f"ApiKeyStore: created key {record['key_prefix']}... for user {user_id}")

        public = {key: value for key, value in record.items() if key != "key_hash"}
        return api_key, public

    def verify(self, api_key: str) -> Principal:
        """Resolve an API key to its principal.

        Raises:
            AuthenticationError: If the key is unknown, revoked or expired
        """
        key_hash = hash_api_key(api_key)
        matches = self.store.query_documents(API_KEYS_COLLECTION, {"key_hash": key_hash}, limit=1)
        if not matches or not hmac.compare_digest(matches[0]["key_hash"], key_hash):
            raise AuthenticationError("Invalid API key")

        record = matches[0]
        if record.get("revoked"):
            raise AuthenticationError("API key has been revoked")

        expires_at = record.get("expires_at")
        if expires_at is not None:
            if expires_at.tzinfo is None:
                expires_at = expires_at.replace(tzinfo=timezone.utc)
            if expires_at <= self.clock():
                raise AuthenticationError("API key has expired")

        return Principal(
            id=record["user_id"],
            auth_method="api_key",
            name=record.get("name"),
            permissions=list(record.get("permissions", [])),
        )

    def revoke(self, key_id: str) -> None:
        """Revoke the key with document id ``key_id``.

        Raises:
            DocumentNotFoundError: If no such key exists
        """
        self.store.update_document(API_KEYS_COLLECTION, key_id, {"revoked": True})
        logger.info(f"ApiKeyStore: revoked key {key_id}")
