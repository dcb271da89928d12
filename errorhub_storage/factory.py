# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Factory for creating document store instances based on configuration."""

import os
from typing import Any

from .document_store import DocumentStore
from .inmemory_document_store import InMemoryDocumentStore
from .mongo_document_store import MongoDocumentStore


def create_document_store(store_type: str | None = None, **kwargs: Any) -> DocumentStore:
    """Create a document store instance.

    Args:
        store_type: "mongodb" or "inmemory". If None, reads DOCUMENT_STORE_TYPE
            (defaults to "inmemory").
        **kwargs: Driver options. For MongoDB, missing host/port/database fall back
            to DOCUMENT_DATABASE_HOST/PORT/NAME, and username/password to
            DOCUMENT_DATABASE_USER/PASSWORD when set.

    Returns:
        DocumentStore instance (not yet connected)

    Raises:
        ValueError: If store_type is not recognized
    """
    store_type = store_type or os.getenv("DOCUMENT_STORE_TYPE", "inmemory")

    if store_type == "mongodb":
        mongo_kwargs = dict(kwargs)
        mongo_kwargs.setdefault("host", os.getenv("DOCUMENT_DATABASE_HOST", "localhost"))
        mongo_kwargs.setdefault("port", int(os.getenv("DOCUMENT_DATABASE_PORT", "27017")))
        mongo_kwargs.setdefault("database", os.getenv("DOCUMENT_DATABASE_NAME", "errorhub"))
        for key, env_var in (("username", "DOCUMENT_DATABASE_USER"), ("password", "DOCUMENT_DATABASE_PASSWORD")):
            if key not in mongo_kwargs and os.getenv(env_var) is not None:
                mongo_kwargs[key] = os.getenv(env_var)
        return MongoDocumentStore(**mongo_kwargs)
    elif store_type == "inmemory":
        return InMemoryDocumentStore()
    else:
        raise ValueError(f"Unknown store_type: {store_type}")
