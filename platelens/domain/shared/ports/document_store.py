"""Document store port.

Contract the pipeline relies on: per-document get/set, equality queries,
and read-modify-write transactions with strong consistency for the documents
read inside the transaction. Transactions are optimistic: if a document read
inside the transaction changes before commit, the transaction function is
re-run against fresh data.

Every committed write is published as a DocumentWritten event, which is what
drives the job dispatchers.
"""

from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Tuple, TypeVar

T = TypeVar("T")

Document = Dict[str, Any]


class ITransaction(Protocol):
    """Handle passed to a transaction function.

    Reads must happen before writes. Writes are buffered and applied
    atomically on commit.
    """

    async def get(self, collection: str, document_id: str) -> Optional[Document]:
        """Read a document inside the transaction (None if missing)."""
        ...

    def set(
        self,
        collection: str,
        document_id: str,
        data: Document,
        merge: bool = False,
    ) -> None:
        """Buffer a write; ``merge`` updates only the given top-level fields."""
        ...


class IDocumentStore(Protocol):
    """Interface for the job/meal/ingredient document store."""

    async def get(self, collection: str, document_id: str) -> Optional[Document]:
        """
        Read a single document.

        Args:
            collection: Collection name
            document_id: Document key

        Returns:
            A copy of the document, or None if it does not exist
        """
        ...

    async def set(
        self,
        collection: str,
        document_id: str,
        data: Document,
        merge: bool = False,
    ) -> None:
        """
        Write a single document outside any transaction.

        Args:
            collection: Collection name
            document_id: Document key
            data: Fields to write
            merge: If True, update the given fields and keep the others;
                otherwise replace the whole document
        """
        ...

    async def delete(self, collection: str, document_id: str) -> bool:
        """Delete a document. Returns True if it existed."""
        ...

    async def find(self, collection: str, filters: Document) -> List[Tuple[str, Document]]:
        """Return ``(document_id, document)`` pairs matching all equality filters."""
        ...

    async def run_transaction(self, fn: Callable[[ITransaction], Awaitable[T]]) -> T:
        """
        Run ``fn`` as an atomic read-modify-write transaction.

        Args:
            fn: Async function receiving the transaction handle; its return
                value is returned once the transaction commits

        Returns:
            The value returned by ``fn`` on the committed attempt

        Raises:
            TransactionConflictError: If the transaction kept conflicting
        """
        ...
