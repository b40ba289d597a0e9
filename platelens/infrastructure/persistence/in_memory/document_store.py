"""In-memory document store implementation.

Provides an in-memory implementation of IDocumentStore for tests and local
development. Transactions use optimistic concurrency: every document carries
a version, reads inside a transaction remember the version they saw, and the
commit is rejected (and the transaction function re-run) if any of them
changed in the meantime.
"""

import asyncio
import logging
import random
from copy import deepcopy
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, TypeVar

from platelens.domain.shared.errors import TransactionConflictError
from platelens.domain.shared.events import DocumentWritten

logger = logging.getLogger(__name__)

T = TypeVar("T")
Document = Dict[str, Any]
Key = Tuple[str, str]
WriteListener = Callable[[DocumentWritten], None]


def _apply(existing: Optional[Document], data: Document, merge: bool) -> Document:
    if merge and existing is not None:
        merged = dict(existing)
        merged.update(deepcopy(data))
        return merged
    return deepcopy(data)


class InMemoryTransaction:
    """Transaction handle for InMemoryDocumentStore."""

    def __init__(self, store: "InMemoryDocumentStore") -> None:
        self._store = store
        self._reads: Dict[Key, int] = {}
        self._writes: List[Tuple[str, str, Document, bool]] = []

    async def get(self, collection: str, document_id: str) -> Optional[Document]:
        if self._writes:
            raise RuntimeError("Transaction reads must happen before writes")
        # Yield like a network read would, so concurrent transactions interleave
        await asyncio.sleep(0)
        key = (collection, document_id)
        self._reads[key] = self._store._version(key)
        doc = self._store._docs.get(collection, {}).get(document_id)
        return deepcopy(doc) if doc is not None else None

    def set(
        self,
        collection: str,
        document_id: str,
        data: Document,
        merge: bool = False,
    ) -> None:
        self._writes.append((collection, document_id, deepcopy(data), merge))


class InMemoryDocumentStore:
    """
    In-memory implementation of IDocumentStore port.

    Thread safety: single event loop only (commits never await, so a
    version check and its writes are atomic with respect to other tasks)
    Persistence: Data lost on process restart (in-memory only)

    Example:
        >>> store = InMemoryDocumentStore()
        >>> await store.set("scan_jobs", "scan-1", {"status": "queued"})
        >>> await store.run_transaction(claim)
    """

    def __init__(
        self,
        on_write: Optional[WriteListener] = None,
        max_transaction_attempts: int = 5,
        conflict_backoff_s: float = 0.002,
    ) -> None:
        """
        Initialize store with empty collections.

        Args:
            on_write: Listener receiving a DocumentWritten per committed write
            max_transaction_attempts: Attempts before TransactionConflictError
            conflict_backoff_s: Base of the randomized exponential pause
                between conflicting attempts
        """
        self._docs: Dict[str, Dict[str, Document]] = {}
        self._versions: Dict[Key, int] = {}
        self._listeners: List[WriteListener] = [on_write] if on_write else []
        self._max_attempts = max_transaction_attempts
        self._conflict_backoff_s = conflict_backoff_s

    def add_write_listener(self, listener: WriteListener) -> None:
        self._listeners.append(listener)

    def _version(self, key: Key) -> int:
        return self._versions.get(key, 0)

    def _write(self, collection: str, document_id: str, data: Document, merge: bool) -> DocumentWritten:
        docs = self._docs.setdefault(collection, {})
        before = docs.get(document_id)
        after = _apply(before, data, merge)
        docs[document_id] = after
        key = (collection, document_id)
        self._versions[key] = self._version(key) + 1
        return DocumentWritten.create(collection, document_id, deepcopy(before), deepcopy(after))

    def _emit(self, events: List[DocumentWritten]) -> None:
        for event in events:
            for listener in self._listeners:
                listener(event)

    async def get(self, collection: str, document_id: str) -> Optional[Document]:
        doc = self._docs.get(collection, {}).get(document_id)
        return deepcopy(doc) if doc is not None else None

    async def set(
        self,
        collection: str,
        document_id: str,
        data: Document,
        merge: bool = False,
    ) -> None:
        """
        Write a document outside any transaction.

        Note:
            - Bumps the document version, so it aborts in-flight transactions
              that read the same document
            - Emits a DocumentWritten event to every listener
        """
        event = self._write(collection, document_id, data, merge)
        self._emit([event])

    async def delete(self, collection: str, document_id: str) -> bool:
        docs = self._docs.get(collection, {})
        if document_id not in docs:
            return False
        before = docs.pop(document_id)
        key = (collection, document_id)
        self._versions[key] = self._version(key) + 1
        self._emit([DocumentWritten.create(collection, document_id, before, None)])
        return True

    async def find(self, collection: str, filters: Document) -> List[Tuple[str, Document]]:
        return [
            (document_id, deepcopy(doc))
            for document_id, doc in self._docs.get(collection, {}).items()
            if all(doc.get(field) == value for field, value in filters.items())
        ]

    def _try_commit(self, tx: InMemoryTransaction) -> Optional[List[DocumentWritten]]:
        for key, seen_version in tx._reads.items():
            if self._version(key) != seen_version:
                return None
        return [
            self._write(collection, document_id, data, merge)
            for collection, document_id, data, merge in tx._writes
        ]

    async def run_transaction(self, fn: Callable[[InMemoryTransaction], Awaitable[T]]) -> T:
        """
        Run ``fn`` atomically, re-running it on version conflicts.

        Raises:
            TransactionConflictError: After ``max_transaction_attempts`` conflicts
        """
        for attempt in range(1, self._max_attempts + 1):
            tx = InMemoryTransaction(self)
            result = await fn(tx)
            events = self._try_commit(tx)
            if events is not None:
                self._emit(events)
                return result
            logger.debug(
                "Transaction conflict, retrying",
                extra={"attempt": attempt, "reads": len(tx._reads)},
            )
            if attempt < self._max_attempts:
                await asyncio.sleep(random.uniform(0, self._conflict_backoff_s * 2 ** (attempt - 1)))
        raise TransactionConflictError(
            f"Transaction aborted after {self._max_attempts} conflicting attempts"
        )

    def clear(self) -> None:
        """
        Remove all documents.

        Note: Utility method for testing - not part of IDocumentStore port
        """
        self._docs.clear()
        self._versions.clear()
