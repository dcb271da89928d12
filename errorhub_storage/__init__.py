# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""errorhub storage adapter.

Document storage with atomic upserts and aggregation pipelines.
"""

__version__ = "0.1.0"

from .document_store import (
    DocumentNotFoundError,
    DocumentStore,
    DocumentStoreConnectionError,
    DocumentStoreError,
    DocumentStoreNotConnectedError,
    DuplicateDocumentError,
)
from .factory import create_document_store
from .inmemory_document_store import InMemoryDocumentStore
from .mongo_document_store import MongoDocumentStore

__all__ = [
    # Version
    "__version__",
    # Document Stores
    "DocumentStore",
    "MongoDocumentStore",
    "InMemoryDocumentStore",
    "create_document_store",
    # Exceptions
    "DocumentStoreError",
    "DocumentStoreNotConnectedError",
    "DocumentStoreConnectionError",
    "DocumentNotFoundError",
    "DuplicateDocumentError",
]
