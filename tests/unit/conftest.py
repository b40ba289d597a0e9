"""Unit test fixtures.

Unit tests never touch external services: stores, queues and blob stores
are the in-memory implementations, providers are mocks or the stub.
"""

from typing import Iterator

import pytest

from platelens.infrastructure.persistence.in_memory.document_store import (
    InMemoryDocumentStore,
)
from platelens.infrastructure.storage.in_memory import InMemoryBlobStore


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Pin backend selection to in-memory/stub regardless of local .env files."""
    monkeypatch.setenv("STORE_BACKEND", "inmemory")
    monkeypatch.setenv("BLOB_BACKEND", "inmemory")
    monkeypatch.setenv("ENRICHMENT_PROVIDER", "stub")
    yield


@pytest.fixture
def store() -> InMemoryDocumentStore:
    """Fixture providing a clean in-memory document store."""
    return InMemoryDocumentStore()


@pytest.fixture
def blob_store() -> InMemoryBlobStore:
    """Fixture providing a clean in-memory blob store."""
    return InMemoryBlobStore(bucket="test-bucket")
