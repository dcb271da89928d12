# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Abstract document store interface for NoSQL backends."""

from abc import ABC, abstractmethod
from typing import Any


class DocumentStoreError(Exception):
    """Base exception for document store errors."""
    pass


class DocumentStoreNotConnectedError(DocumentStoreError):
    """Exception raised when attempting operations on a disconnected store."""
    pass


class DocumentStoreConnectionError(DocumentStoreError):
    """Exception raised when connection to the document store fails."""
    pass


class DocumentNotFoundError(DocumentStoreError):
    """Exception raised when a document is not found."""
    pass


class DuplicateDocumentError(DocumentStoreError):
    """Exception raised when a write violates a unique index."""
    pass


class DocumentStore(ABC):
    """Abstract base class for document storage backends.

    Update documents passed to ``upsert_document`` use the MongoDB update
    operator subset ``$set``, ``$setOnInsert``, ``$inc``, ``$min`` and ``$max``.
    Aggregation pipelines use ``$match``, ``$group``, ``$sort``, ``$limit``
    and ``$count``.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the document store.

        Raises:
            DocumentStoreConnectionError: If connection fails
        """
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the document store."""
        pass

    @abstractmethod
    def ensure_unique_index(self, collection: str, field: str) -> None:
        """Declare that ``field`` must be unique within ``collection``.

        Idempotent; safe to call on every start-up.
        """
        pass

    @abstractmethod
    def insert_document(self, collection: str, doc: dict[str, Any]) -> str:
        """Insert a document into the specified collection.

        Args:
            collection: Name of the collection/table
            doc: Document data as dictionary

        Returns:
            Document ID as string

        Raises:
            DuplicateDocumentError: If a unique index is violated
            DocumentStoreError: If insertion fails
        """
        pass

    @abstractmethod
    def get_document(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        """Retrieve a document by its ID.

        Args:
            collection: Name of the collection/table
            doc_id: Document ID

        Returns:
            Document data as dictionary, or None if not found
        """
        pass

    @abstractmethod
    def query_documents(
        self, collection: str, filter_dict: dict[str, Any], limit: int = 100
    ) -> list[dict[str, Any]]:
        """Query documents matching the filter criteria.

        Args:
            collection: Name of the collection/table
            filter_dict: Filter criteria as dictionary
            limit: Maximum number of documents to return

        Returns:
            List of matching documents
        """
        pass

    @abstractmethod
    def update_document(
        self, collection: str, doc_id: str, patch: dict[str, Any]
    ) -> None:
        """Update a document with the provided patch.

        Args:
            collection: Name of the collection/table
            doc_id: Document ID
            patch: Fields to set

        Raises:
            DocumentNotFoundError: If document does not exist
            DocumentStoreError: If update operation fails
        """
        pass

    @abstractmethod
    def upsert_document(
        self, collection: str, filter_dict: dict[str, Any], update: dict[str, Any]
    ) -> dict[str, Any]:
        """Atomically update the document matching ``filter_dict``, creating it if absent.

        A newly created document starts from the equality fields of
        ``filter_dict`` and then has ``update`` applied, including
        ``$setOnInsert``. Concurrent calls with the same filter never create
        two documents and never lose an ``$inc``.

        Args:
            collection: Name of the collection/table
            filter_dict: Equality filter identifying the document
            update: Update operators to apply

        Returns:
            The document after the update

        Raises:
            DocumentStoreError: If the upsert fails
        """
        pass

    @abstractmethod
    def aggregate_documents(
        self, collection: str, pipeline: list[dict[str, Any]]
    ) -> list[dict[str, Any]]:
        """Execute an aggregation pipeline on a collection.

        Args:
            collection: Name of the collection/table
            pipeline: Aggregation pipeline (list of stage dictionaries)

        Returns:
            List of aggregation results

        Raises:
            DocumentStoreError: If aggregation fails
        """
        pass
