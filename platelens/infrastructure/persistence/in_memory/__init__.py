"""In-memory persistence implementations."""

from platelens.infrastructure.persistence.in_memory.document_store import (
    InMemoryDocumentStore,
)

__all__ = ["InMemoryDocumentStore"]
