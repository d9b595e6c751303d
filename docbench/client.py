from __future__ import annotations

import logging
from typing import Any, Mapping

from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

LOGGER = logging.getLogger("docbench.client")

SERVER_SELECTION_TIMEOUT_MS_DEFAULT = 30_000


class DocumentStoreError(Exception):
    """Base class for failures reported by the document-store client."""


class DocumentStoreConnectionError(DocumentStoreError):
    """Raised when the document store cannot be reached or fails its ping."""


class DocumentStoreOperationError(DocumentStoreError):
    """Raised when a single CRUD call fails at the transport or protocol level."""


class DocumentStoreClient:
    """Thin wrapper over one pymongo collection shared by every worker thread.

    ``MongoClient`` keeps its own connection pool and is safe to call from many
    threads at once, so a single instance is handed to the whole worker pool.
    Zero-match reads, updates and deletes are not errors.
    """

    def __init__(self, client: MongoClient, database: str, collection: str) -> None:
        self._client = client
        self._collection: Collection = client[database][collection]

    @property
    def collection(self) -> Collection:
        return self._collection

    def ping(self) -> None:
        try:
            self._client.admin.command("ping")
        except PyMongoError as exc:
            raise DocumentStoreConnectionError(f"ping failed: {exc}") from exc

    def insert_one(self, document: Mapping[str, Any]) -> None:
        try:
            self._collection.insert_one(dict(document))
        except PyMongoError as exc:
            raise DocumentStoreOperationError("insert_one failed") from exc

    def find_one(self, key: str) -> dict[str, Any] | None:
        try:
            return self._collection.find_one({"_id": key})
        except PyMongoError as exc:
            raise DocumentStoreOperationError("find_one failed") from exc

    def update_one(self, key: str, fields: Mapping[str, Any]) -> int:
        try:
            result = self._collection.update_one({"_id": key}, {"$set": dict(fields)})
        except PyMongoError as exc:
            raise DocumentStoreOperationError("update_one failed") from exc
        return result.matched_count

    def delete_one(self, key: str) -> int:
        try:
            result = self._collection.delete_one({"_id": key})
        except PyMongoError as exc:
            raise DocumentStoreOperationError("delete_one failed") from exc
        return result.deleted_count

    def close(self) -> None:
        self._client.close()


def connect_client(
    uri: str,
    database: str,
    collection: str,
    server_selection_timeout_ms: int = SERVER_SELECTION_TIMEOUT_MS_DEFAULT,
) -> DocumentStoreClient:
    """Connect to ``uri`` and ping it once.

    There is no retry: any failure is fatal for the whole benchmark run.
    """
    try:
        mongo_client = MongoClient(
            uri, serverSelectionTimeoutMS=server_selection_timeout_ms
        )
    except PyMongoError as exc:
        raise DocumentStoreConnectionError(f"failed to connect: {exc}") from exc

    client = DocumentStoreClient(mongo_client, database, collection)
    try:
        client.ping()
    except DocumentStoreConnectionError:
        client.close()
        raise
    LOGGER.debug("Connected to %s/%s", database, collection)
    return client


__all__ = [
    "DocumentStoreClient",
    "DocumentStoreConnectionError",
    "DocumentStoreError",
    "DocumentStoreOperationError",
    "connect_client",
]
