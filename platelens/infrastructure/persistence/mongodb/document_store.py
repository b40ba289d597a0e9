"""MongoDB document store.

Implements IDocumentStore on top of motor. Each collection maps to a MongoDB
collection and the document id is stored as ``_id``.

Transactions use MongoDB multi-document transactions (requires a replica
set). Writes are buffered by the transaction handle and flushed inside the
session; concurrent transactions writing the same document fail with a
TransientTransactionError, and ``with_transaction`` re-runs the callback
against fresh data. That gives the same compare-and-set behavior as the
in-memory store.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, TypeVar

from motor.motor_asyncio import (
    AsyncIOMotorClient,
    AsyncIOMotorClientSession,
    AsyncIOMotorCollection,
)
from pymongo import ReturnDocument

from platelens.domain.shared.events import DocumentWritten
from platelens.infrastructure.config import get_mongodb_database, get_mongodb_uri

logger = logging.getLogger(__name__)

T = TypeVar("T")
Document = Dict[str, Any]
WriteListener = Callable[[DocumentWritten], None]
PendingWrite = Tuple[str, str, Optional[Document], Document]


def _strip_id(doc: Optional[Document]) -> Optional[Document]:
    if doc is None:
        return None
    doc = dict(doc)
    doc.pop("_id", None)
    return doc


class MongoTransaction:
    """Transaction handle bound to a motor session."""

    def __init__(self, store: "MongoDocumentStore", session: AsyncIOMotorClientSession) -> None:
        self._store = store
        self._session = session
        self._writes: List[Tuple[str, str, Document, bool]] = []

    async def get(self, collection: str, document_id: str) -> Optional[Document]:
        if self._writes:
            raise RuntimeError("Transaction reads must happen before writes")
        doc = await self._store._collection(collection).find_one(
            {"_id": document_id}, session=self._session
        )
        return _strip_id(doc)

    def set(
        self,
        collection: str,
        document_id: str,
        data: Document,
        merge: bool = False,
    ) -> None:
        self._writes.append((collection, document_id, dict(data), merge))

    async def flush(self) -> List[PendingWrite]:
        """Apply buffered writes inside the session; returns (before, after) pairs."""
        applied: List[PendingWrite] = []
        for collection, document_id, data, merge in self._writes:
            before, after = await self._store._write(
                collection, document_id, data, merge, session=self._session
            )
            applied.append((collection, document_id, before, after))
        return applied


class MongoDocumentStore:
    """
    MongoDB implementation of IDocumentStore port.

    Example:
        >>> store = MongoDocumentStore()  # uses MONGODB_URI / MONGODB_DATABASE
        >>> await store.set("scan_jobs", "scan-1", {"status": "queued"})
    """

    def __init__(
        self,
        client: Optional[AsyncIOMotorClient[Dict[str, Any]]] = None,
        database_name: Optional[str] = None,
        on_write: Optional[WriteListener] = None,
    ) -> None:
        """
        Initialize store with optional client.

        Args:
            client: Motor client (if None, creates new one from config)
            database_name: Database (if None, read from MONGODB_DATABASE)
            on_write: Listener receiving a DocumentWritten per committed write

        Raises:
            ValueError: If no client is given and MONGODB_URI is not set
        """
        if client is None:
            uri = get_mongodb_uri()
            if not uri:
                raise ValueError(
                    "MONGODB_URI not configured. "
                    "Set MONGODB_URI, MONGODB_USER, "
                    "and MONGODB_PASSWORD environment variables."
                )
            self._client: AsyncIOMotorClient[Dict[str, Any]] = AsyncIOMotorClient(uri)
        else:
            self._client = client

        self._db = self._client[database_name or get_mongodb_database()]
        self._listeners: List[WriteListener] = [on_write] if on_write else []

        logger.info(
            "Initialized MongoDocumentStore",
            extra={"database": self._db.name},
        )

    def add_write_listener(self, listener: WriteListener) -> None:
        self._listeners.append(listener)

    def _collection(self, name: str) -> AsyncIOMotorCollection[Dict[str, Any]]:
        return self._db[name]

    def _emit(self, writes: List[PendingWrite]) -> None:
        for collection, document_id, before, after in writes:
            event = DocumentWritten.create(collection, document_id, before, after)
            for listener in self._listeners:
                listener(event)

    async def _write(
        self,
        collection: str,
        document_id: str,
        data: Document,
        merge: bool,
        session: Optional[AsyncIOMotorClientSession] = None,
    ) -> Tuple[Optional[Document], Document]:
        coll = self._collection(collection)
        try:
            if merge:
                previous = await coll.find_one_and_update(
                    {"_id": document_id},
                    {"$set": data},
                    upsert=True,
                    return_document=ReturnDocument.BEFORE,
                    session=session,
                )
                before = _strip_id(previous)
                after = {**(before or {}), **data}
            else:
                previous = await coll.find_one_and_replace(
                    {"_id": document_id},
                    data,
                    upsert=True,
                    return_document=ReturnDocument.BEFORE,
                    session=session,
                )
                before = _strip_id(previous)
                after = dict(data)
        except Exception as e:
            logger.error(
                f"Error in write: collection={collection}, id={document_id}, error={e}"
            )
            raise
        return before, after

    async def get(self, collection: str, document_id: str) -> Optional[Document]:
        try:
            doc = await self._collection(collection).find_one({"_id": document_id})
        except Exception as e:
            logger.error(f"Error in get: collection={collection}, id={document_id}, error={e}")
            raise
        return _strip_id(doc)

    async def set(
        self,
        collection: str,
        document_id: str,
        data: Document,
        merge: bool = False,
    ) -> None:
        before, after = await self._write(collection, document_id, data, merge)
        self._emit([(collection, document_id, before, after)])

    async def delete(self, collection: str, document_id: str) -> bool:
        try:
            previous = await self._collection(collection).find_one_and_delete(
                {"_id": document_id}
            )
        except Exception as e:
            logger.error(
                f"Error in delete: collection={collection}, id={document_id}, error={e}"
            )
            raise
        if previous is None:
            return False
        event = DocumentWritten.create(collection, document_id, _strip_id(previous), None)
        for listener in self._listeners:
            listener(event)
        return True

    async def find(self, collection: str, filters: Document) -> List[Tuple[str, Document]]:
        try:
            cursor = self._collection(collection).find(filters)
            documents = await cursor.to_list(length=None)
        except Exception as e:
            logger.error(f"Error in find: collection={collection}, filter={filters}, error={e}")
            raise
        return [(str(doc["_id"]), _strip_id(doc) or {}) for doc in documents]

    async def run_transaction(self, fn: Callable[[MongoTransaction], Awaitable[T]]) -> T:
        """
        Run ``fn`` inside a MongoDB transaction.

        ``with_transaction`` retries the callback on transient transaction
        errors (write conflicts) and on unknown commit results.
        """

        async def _callback(session: AsyncIOMotorClientSession) -> Tuple[T, List[PendingWrite]]:
            tx = MongoTransaction(self, session)
            result = await fn(tx)
            applied = await tx.flush()
            return result, applied

        async with await self._client.start_session() as session:
            result, applied = await session.with_transaction(_callback)

        self._emit(applied)
        return result

    async def close(self) -> None:
        """Close MongoDB connection."""
        self._client.close()
        logger.info("Closed connection for MongoDocumentStore")
