"""Document store factory.

Environment-based store selection with in-memory default.
Strategy:
- .env (runtime): STORE_BACKEND=mongodb (production persistence)
- .env.test (pytest): STORE_BACKEND=inmemory (fast, isolated tests)
- Default: inmemory (safe fallback if env vars not set)
"""

from typing import Callable, Optional

from platelens.domain.shared.events import DocumentWritten
from platelens.domain.shared.ports.document_store import IDocumentStore
from platelens.infrastructure.config import get_mongodb_uri, get_store_backend
from platelens.infrastructure.persistence.in_memory.document_store import (
    InMemoryDocumentStore,
)
from platelens.infrastructure.persistence.mongodb.document_store import MongoDocumentStore


def create_document_store(
    on_write: Optional[Callable[[DocumentWritten], None]] = None,
) -> IDocumentStore:
    """Create document store based on STORE_BACKEND env var.

    Environment variable: STORE_BACKEND
    Values:
        - "inmemory": In-memory store (default, fast, transient)
        - "mongodb": MongoDB store (persistent, requires MONGODB_URI and a
          replica set for transactions)

    Args:
        on_write: Listener receiving every committed write (the job queue)

    Returns:
        IDocumentStore: Store instance

    Raises:
        ValueError: If mongodb selected but MONGODB_URI not set
    """
    mode = get_store_backend()

    if mode == "mongodb":
        if not get_mongodb_uri():
            raise ValueError(
                "STORE_BACKEND=mongodb but MONGODB_URI not set. "
                "Set MONGODB_URI in .env or use STORE_BACKEND=inmemory"
            )
        return MongoDocumentStore(on_write=on_write)

    return InMemoryDocumentStore(on_write=on_write)
