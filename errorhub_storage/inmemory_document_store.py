# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""In-memory document store for testing and local development."""

import copy
import logging
import operator
import threading
import uuid
from collections import defaultdict
from typing import Any

from .document_store import DocumentNotFoundError, DocumentStore, DuplicateDocumentError

logger = logging.getLogger(__name__)

_MISSING = object()

_COMPARISONS = {
    "$gt": operator.gt,
    "$gte": operator.ge,
    "$lt": operator.lt,
    "$lte": operator.le,
}


class InMemoryDocumentStore(DocumentStore):
    """In-memory document store implementation for testing.

    Every public operation holds a single re-entrant lock, so ``upsert_document``
    is atomic with respect to concurrent request threads.
    """

    def __init__(self):
        """Initialize in-memory document store."""
        self.collections: dict[str, dict[str, dict[str, Any]]] = defaultdict(dict)
        self.unique_indexes: dict[str, set[str]] = defaultdict(set)
        self.connected = False
        self._lock = threading.RLock()

    def connect(self) -> None:
        """Pretend to connect.

        Note: Always succeeds for in-memory store
        """
        self.connected = True
        logger.debug("InMemoryDocumentStore: connected")

    def disconnect(self) -> None:
        """Pretend to disconnect."""
        self.connected = False
        logger.debug("InMemoryDocumentStore: disconnected")

    def ensure_unique_index(self, collection: str, field: str) -> None:
        with self._lock:
            self.unique_indexes[collection].add(field)
        logger.debug(f"InMemoryDocumentStore: unique index on {collection}.{field}")

    def insert_document(self, collection: str, doc: dict[str, Any]) -> str:
        """Insert a document into the specified collection.

        Args:
            collection: Name of the collection
            doc: Document data as dictionary

        Returns:
            Document ID as string

        Raises:
            DuplicateDocumentError: If the ID or a unique field already exists
        """
        doc_id = doc.get("_id", str(uuid.uuid4()))

        # Deep copy so external mutations never reach stored data
        doc_copy = copy.deepcopy(doc)
        doc_copy["_id"] = doc_id

        with self._lock:
            if doc_id in self.collections[collection]:
                raise DuplicateDocumentError(f"Document {doc_id} already exists in collection {collection}")
            self._check_unique(collection, doc_copy)
            self.collections[collection][doc_id] = doc_copy

        logger.debug(f"InMemoryDocumentStore: inserted document {doc_id} into {collection}")
        return doc_id

    def get_document(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        """Retrieve a document by its ID.

        Args:
            collection: Name of the collection
            doc_id: Document ID

        Returns:
            Document data as dictionary, or None if not found
        """
        with self._lock:
            doc = self.collections[collection].get(doc_id)
            if doc is not None:
                logger.debug(f"InMemoryDocumentStore: retrieved document {doc_id} from {collection}")
                return copy.deepcopy(doc)
        logger.debug(f"InMemoryDocumentStore: document {doc_id} not found in {collection}")
        return None

    def query_documents(
        self, collection: str, filter_dict: dict[str, Any], limit: int = 100
    ) -> list[dict[str, Any]]:
        """Query documents matching the filter criteria.

        Args:
            collection: Name of the collection
            filter_dict: Filter criteria (equality or the $match operators)
            limit: Maximum number of documents to return

        Returns:
            List of matching documents
        """
        results = []
        with self._lock:
            for doc in self.collections[collection].values():
                if _matches(doc, filter_dict):
                    results.append(copy.deepcopy(doc))
                    if len(results) >= limit:
                        break

        logger.debug(
            f"InMemoryDocumentStore: query on {collection} with {filter_dict} "
            f"returned {len(results)} documents"
        )
        return results

    def update_document(
        self, collection: str, doc_id: str, patch: dict[str, Any]
    ) -> None:
        """Update a document with the provided patch.

        Raises:
            DocumentNotFoundError: If document does not exist
        """
        with self._lock:
            if doc_id not in self.collections[collection]:
                logger.debug(f"InMemoryDocumentStore: document {doc_id} not found in {collection}")
                raise DocumentNotFoundError(f"Document {doc_id} not found in collection {collection}")
            self.collections[collection][doc_id].update(copy.deepcopy(patch))
        logger.debug(f"InMemoryDocumentStore: updated document {doc_id} in {collection}")

    def upsert_document(
        self, collection: str, filter_dict: dict[str, Any], update: dict[str, Any]
    ) -> dict[str, Any]:
        with self._lock:
            existing = None
            for doc in self.collections[collection].values():
                if _matches(doc, filter_dict):
                    existing = doc
                    break

            if existing is None:
                created = {
                    key: copy.deepcopy(value)
                    for key, value in filter_dict.items()
                    if not isinstance(value, dict)
                }
                created["_id"] = created.get("_id", str(uuid.uuid4()))
                _apply_update(created, update, inserting=True)
                self._check_unique(collection, created)
                self.collections[collection][created["_id"]] = created
                result = created
                logger.debug(f"InMemoryDocumentStore: upsert inserted {created['_id']} into {collection}")
            else:
                _apply_update(existing, update, inserting=False)
                result = existing
                logger.debug(f"InMemoryDocumentStore: upsert updated {existing['_id']} in {collection}")

            return copy.deepcopy(result)

    def clear_collection(self, collection: str) -> None:
        """Clear all documents in a collection (useful for testing)."""
        with self._lock:
            self.collections[collection].clear()
        logger.debug(f"InMemoryDocumentStore: cleared collection {collection}")

    def clear_all(self) -> None:
        """Clear all collections (useful for testing)."""
        with self._lock:
            self.collections.clear()
        logger.debug("InMemoryDocumentStore: cleared all collections")

    def aggregate_documents(
        self, collection: str, pipeline: list[dict[str, Any]]
    ) -> list[dict[str, Any]]:
        """Execute a simplified aggregation pipeline on a collection.

        Supports the stages $match, $group, $sort, $limit and $count with the
        MongoDB semantics the service relies on. Unknown stages are logged and
        skipped.

        **Supported $match operators**: $eq, $ne, $gt, $gte, $lt, $lte, $in, $exists

        **Supported $group accumulators**: $sum, $min, $max, $first, $last

        Args:
            collection: Name of the collection
            pipeline: Aggregation pipeline (list of stage dictionaries)

        Returns:
            List of aggregation results
        """
        with self._lock:
            if collection not in self.collections:
                logger.debug(
                    f"InMemoryDocumentStore: collection '{collection}' not found for aggregation"
                )
                results: list[dict[str, Any]] = []
            else:
                results = [copy.deepcopy(doc) for doc in self.collections[collection].values()]

        for stage in pipeline:
            stage_name = list(stage.keys())[0]
            stage_spec = stage[stage_name]

            if stage_name == "$match":
                results = [doc for doc in results if _matches(doc, stage_spec)]
            elif stage_name == "$group":
                results = self._apply_group(results, stage_spec)
            elif stage_name == "$sort":
                results = self._apply_sort(results, stage_spec)
            elif stage_name == "$limit":
                results = results[:stage_spec]
            elif stage_name == "$count":
                results = [{stage_spec: len(results)}] if results else []
            else:
                logger.warning(
                    f"InMemoryDocumentStore: aggregation stage '{stage_name}' not implemented, skipping"
                )

        logger.debug(
            f"InMemoryDocumentStore: aggregation on {collection} "
            f"returned {len(results)} documents"
        )
        return results

    def _check_unique(self, collection: str, doc: dict[str, Any]) -> None:
        for field in self.unique_indexes.get(collection, ()):
            value = doc.get(field, _MISSING)
            if value is _MISSING:
                continue
            for other_id, other in self.collections[collection].items():
                if other_id != doc["_id"] and other.get(field, _MISSING) == value:
                    raise DuplicateDocumentError(
                        f"Duplicate value {value!r} for unique field {collection}.{field}"
                    )

    def _apply_group(
        self, documents: list[dict[str, Any]], group_spec: dict[str, Any]
    ) -> list[dict[str, Any]]:
        """Apply $group stage, preserving first-seen group order."""
        id_expr = group_spec["_id"]
        groups: dict[Any, dict[str, Any]] = {}

        for doc in documents:
            group_id = _evaluate(doc, id_expr)
            group_key = _freeze(group_id)
            if group_key not in groups:
                groups[group_key] = {"_id": group_id}
                first = True
            else:
                first = False
            bucket = groups[group_key]

            for out_field, accumulator in group_spec.items():
                if out_field == "_id":
                    continue
                op, expr = next(iter(accumulator.items()))
                value = _evaluate(doc, expr)
                if op == "$sum":
                    addend = value if isinstance(value, (int, float)) else 0
                    bucket[out_field] = bucket.get(out_field, 0) + addend
                elif op == "$first":
                    if first:
                        bucket[out_field] = value
                elif op == "$last":
                    bucket[out_field] = value
                elif op in ("$min", "$max"):
                    if value is None:
                        bucket.setdefault(out_field, None)
                        continue
                    current = bucket.get(out_field)
                    better = operator.lt if op == "$min" else operator.gt
                    if current is None or better(value, current):
                        bucket[out_field] = value
                else:
                    logger.warning(
                        f"InMemoryDocumentStore: unsupported accumulator '{op}' in $group, skipping"
                    )

        return list(groups.values())

    def _apply_sort(
        self, documents: list[dict[str, Any]], sort_spec: dict[str, int]
    ) -> list[dict[str, Any]]:
        """Apply $sort stage; missing values sort before everything else, like MongoDB."""
        ordered = list(documents)
        for field, direction in reversed(list(sort_spec.items())):
            present = [doc for doc in ordered if doc.get(field) is not None]
            absent = [doc for doc in ordered if doc.get(field) is None]
            present.sort(key=lambda doc: doc[field], reverse=direction < 0)
            ordered = absent + present if direction > 0 else present + absent
        return ordered


def _evaluate(doc: dict[str, Any], expr: Any) -> Any:
    """Resolve a field path (``"$field"``), literal or sub-document expression."""
    if isinstance(expr, str) and expr.startswith("$"):
        return doc.get(expr[1:])
    if isinstance(expr, dict):
        return {key: _evaluate(doc, value) for key, value in expr.items()}
    return expr


def _freeze(value: Any) -> Any:
    if isinstance(value, dict):
        return tuple(sorted((key, _freeze(item)) for key, item in value.items()))
    if isinstance(value, list):
        return tuple(_freeze(item) for item in value)
    return value


def _matches(doc: dict[str, Any], match_spec: dict[str, Any]) -> bool:
    """Check a document against a $match specification.

    Unsupported operators are logged and ignored.
    """
    for key, condition in match_spec.items():
        actual = doc.get(key, _MISSING)

        if not (isinstance(condition, dict) and condition and all(k.startswith("$") for k in condition)):
            if actual is _MISSING or actual != condition:
                return False
            continue

        for op, value in condition.items():
            if op == "$exists":
                if bool(value) != (actual is not _MISSING):
                    return False
            elif op == "$eq":
                if actual is _MISSING or actual != value:
                    return False
            elif op == "$ne":
                if actual is not _MISSING and actual == value:
                    return False
            elif op == "$in":
                if actual is _MISSING or actual not in value:
                    return False
            elif op in _COMPARISONS:
                if actual is _MISSING or actual is None:
                    return False
                try:
                    if not _COMPARISONS[op](actual, value):
                        return False
                except TypeError:
                    return False
            else:
                logger.warning(
                    f"InMemoryDocumentStore: unsupported operator '{op}' in $match, skipping"
                )
    return True


def _apply_update(doc: dict[str, Any], update: dict[str, Any], inserting: bool) -> None:
    """Apply MongoDB-style update operators to ``doc`` in place."""
    for op, fields in update.items():
        if op == "$setOnInsert":
            if inserting:
                doc.update(copy.deepcopy(fields))
        elif op == "$set":
            doc.update(copy.deepcopy(fields))
        elif op == "$inc":
            for field, amount in fields.items():
                doc[field] = doc.get(field, 0) + amount
        elif op in ("$min", "$max"):
            better = operator.lt if op == "$min" else operator.gt
            for field, value in fields.items():
                current = doc.get(field)
                if current is None or better(value, current):
                    doc[field] = copy.deepcopy(value)
        else:
            raise ValueError(f"Unsupported update operator: {op}")
