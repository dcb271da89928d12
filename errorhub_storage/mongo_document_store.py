# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""MongoDB document store implementation."""

import logging
from typing import Any

from bson import ObjectId
from pymongo import MongoClient, ReturnDocument
from pymongo.errors import ConnectionFailure, DuplicateKeyError, PyMongoError

from .document_store import (
    DocumentNotFoundError,
    DocumentStore,
    DocumentStoreConnectionError,
    DocumentStoreError,
    DocumentStoreNotConnectedError,
    DuplicateDocumentError,
)

logger = logging.getLogger(__name__)


class MongoDocumentStore(DocumentStore):
    """MongoDB document store implementation."""

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        username: str | None = None,
        password: str | None = None,
        database: str | None = None,
        **kwargs
    ):
        """Initialize MongoDB document store.

        Args:
            host: MongoDB host (required)
            port: MongoDB port (required)
            username: MongoDB username (optional)
            password: MongoDB password (optional)
            database: Database name (required)
            **kwargs: Additional MongoClient options

        Raises:
            ValueError: If required parameters (host, port, database) are not provided
        """
        if not host:
            raise ValueError(
                "MongoDB host is required. "
                "Provide the MongoDB server hostname or IP address."
            )
        if port is None:
            raise ValueError(
                "MongoDB port is required. "
                "Provide the MongoDB server port number."
            )
        if not database:
            raise ValueError(
                "MongoDB database is required. "
                "Provide the database name to use."
            )

        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.database_name = database
        self.client_options = kwargs
        self.client = None
        self.database = None

    def connect(self) -> None:
        """Connect to MongoDB.

        Raises:
            DocumentStoreConnectionError: If connection fails
        """
        try:
            connection_params: dict[str, Any] = {
                "host": self.host,
                "port": self.port,
                # Stored datetimes are UTC; hand them back timezone-aware
                "tz_aware": True,
            }

            if self.username and self.password:
                connection_params["username"] = self.username
                connection_params["password"] = self.password
                if "authSource" not in self.client_options:
                    connection_params["authSource"] = "admin"

            connection_params.update(self.client_options)

            self.client = MongoClient(**connection_params)
            self.client.admin.command('ping')
            self.database = self.client[self.database_name]

            logger.info("MongoDocumentStore: connected to %s:%s/%s", self.host, self.port, self.database_name)

        except ConnectionFailure as e:
            logger.error("MongoDocumentStore: connection failed - %s", e, exc_info=True)
            raise DocumentStoreConnectionError(f"Failed to connect to MongoDB at {self.host}:{self.port}") from e
        except PyMongoError as e:
            logger.error("MongoDocumentStore: unexpected error during connect - %s", e, exc_info=True)
            raise DocumentStoreConnectionError(f"Unexpected error connecting to MongoDB: {str(e)}") from e

    def disconnect(self) -> None:
        """Disconnect from MongoDB."""
        if self.client:
            self.client.close()
            self.client = None
            self.database = None
            logger.info("MongoDocumentStore: disconnected")

    def _collection(self, collection: str):
        if self.database is None:
            raise DocumentStoreNotConnectedError("Not connected to MongoDB")
        return self.database[collection]

    def ensure_unique_index(self, collection: str, field: str) -> None:
        coll = self._collection(collection)
        try:
            coll.create_index(field, unique=True)
            logger.debug(f"MongoDocumentStore: ensured unique index on {collection}.{field}")
        except PyMongoError as e:
            logger.error(f"MongoDocumentStore: create_index failed - {e}", exc_info=True)
            raise DocumentStoreError(f"Failed to create unique index on {collection}.{field}") from e

    def insert_document(self, collection: str, doc: dict[str, Any]) -> str:
        """Insert a document into the specified collection.

        Raises:
            DocumentStoreNotConnectedError: If not connected to MongoDB
            DuplicateDocumentError: If a unique index is violated
            DocumentStoreError: If the insert fails
        """
        coll = self._collection(collection)

        try:
            # insert_one adds _id to the dict it is given
            result = coll.insert_one(dict(doc))
            doc_id = str(result.inserted_id)
            logger.debug(f"MongoDocumentStore: inserted document {doc_id} into {collection}")
            return doc_id
        except DuplicateKeyError as e:
            raise DuplicateDocumentError(f"Duplicate key inserting into {collection}") from e
        except PyMongoError as e:
            logger.error(f"MongoDocumentStore: insert failed - {e}")
            raise DocumentStoreError(f"Failed to insert document into {collection}") from e

    def get_document(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        """Retrieve a document by its ID.

        Raises:
            DocumentStoreNotConnectedError: If not connected to MongoDB
            DocumentStoreError: If query operation fails
        """
        coll = self._collection(collection)

        try:
            doc = coll.find_one({"_id": doc_id})
            if doc is None and ObjectId.is_valid(doc_id):
                doc = coll.find_one({"_id": ObjectId(doc_id)})

            if doc:
                self._convert_objectids_to_strings(doc)
                logger.debug(f"MongoDocumentStore: retrieved document {doc_id} from {collection}")
                return doc

            logger.debug(f"MongoDocumentStore: document {doc_id} not found in {collection}")
            return None

        except PyMongoError as e:
            logger.error(f"MongoDocumentStore: get_document failed - {e}", exc_info=True)
            raise DocumentStoreError(f"Failed to retrieve document {doc_id} from {collection}") from e

    def query_documents(
        self, collection: str, filter_dict: dict[str, Any], limit: int = 100
    ) -> list[dict[str, Any]]:
        """Query documents matching the filter criteria.

        Raises:
            DocumentStoreNotConnectedError: If not connected to MongoDB
            DocumentStoreError: If query operation fails
        """
        coll = self._collection(collection)

        try:
            results = []
            for doc in coll.find(filter_dict).limit(limit):
                self._convert_objectids_to_strings(doc)
                results.append(doc)

            logger.debug(
                f"MongoDocumentStore: query on {collection} with {filter_dict} "
                f"returned {len(results)} documents"
            )
            return results

        except PyMongoError as e:
            logger.error(f"MongoDocumentStore: query_documents failed - {e}", exc_info=True)
            raise DocumentStoreError(f"Failed to query documents from {collection}") from e

    def update_document(
        self, collection: str, doc_id: str, patch: dict[str, Any]
    ) -> None:
        """Update a document with the provided patch.

        Raises:
            DocumentStoreNotConnectedError: If not connected to MongoDB
            DocumentNotFoundError: If document does not exist
            DocumentStoreError: If update operation fails
        """
        coll = self._collection(collection)

        try:
            result = coll.update_one({"_id": doc_id}, {"$set": patch})
        except PyMongoError as e:
            logger.error(f"MongoDocumentStore: update_document failed - {e}", exc_info=True)
            raise DocumentStoreError(f"Failed to update document {doc_id} in {collection}") from e

        if result.matched_count == 0:
            logger.debug(f"MongoDocumentStore: document {doc_id} not found in {collection}")
            raise DocumentNotFoundError(f"Document {doc_id} not found in collection {collection}")

        logger.debug(f"MongoDocumentStore: updated document {doc_id} in {collection}")

    def upsert_document(
        self, collection: str, filter_dict: dict[str, Any], update: dict[str, Any]
    ) -> dict[str, Any]:
        """Atomic find_one_and_update with upsert.

        Two racing upserts can both miss and both try to insert; the loser
        hits the unique index and is retried once, which then matches.
        """
        coll = self._collection(collection)

        for attempt in (1, 2):
            try:
                doc = coll.find_one_and_update(
                    filter_dict,
                    update,
                    upsert=True,
                    return_document=ReturnDocument.AFTER,
                )
                self._convert_objectids_to_strings(doc)
                logger.debug(f"MongoDocumentStore: upserted {filter_dict} in {collection}")
                return doc
            except DuplicateKeyError as e:
                if attempt == 2:
                    raise DuplicateDocumentError(f"Upsert on {collection} kept colliding") from e
                logger.debug(f"MongoDocumentStore: upsert race on {collection}, retrying")
            except PyMongoError as e:
                logger.error(f"MongoDocumentStore: upsert_document failed - {e}", exc_info=True)
                raise DocumentStoreError(f"Failed to upsert document in {collection}") from e

        raise DocumentStoreError(f"Failed to upsert document in {collection}")

    def aggregate_documents(
        self, collection: str, pipeline: list[dict[str, Any]]
    ) -> list[dict[str, Any]]:
        """Execute an aggregation pipeline on a collection.

        **Note**: ObjectId values are recursively converted to strings for JSON
        serialization compatibility.

        Raises:
            DocumentStoreNotConnectedError: If not connected to MongoDB
            DocumentStoreError: If aggregation operation fails
        """
        coll = self._collection(collection)

        try:
            results = []
            for doc in coll.aggregate(pipeline):
                self._convert_objectids_to_strings(doc)
                results.append(doc)

            logger.debug(
                f"MongoDocumentStore: aggregation on {collection} "
                f"returned {len(results)} documents"
            )
            return results

        except PyMongoError as e:
            logger.error(f"MongoDocumentStore: aggregate_documents failed - {e}", exc_info=True)
            raise DocumentStoreError(f"Failed to aggregate documents from {collection}") from e

    def _convert_objectids_to_strings(self, obj: Any) -> None:
        """Recursively convert ObjectId instances to strings in-place."""
        if isinstance(obj, dict):
            for key, value in obj.items():
                if isinstance(value, ObjectId):
                    obj[key] = str(value)
                elif isinstance(value, dict | list):
                    self._convert_objectids_to_strings(value)
        elif isinstance(obj, list):
            for i, item in enumerate(obj):
                if isinstance(item, ObjectId):
                    obj[i] = str(item)
                elif isinstance(item, dict | list):
                    self._convert_objectids_to_strings(item)
