"""Unit tests for InMemoryDocumentStore.

Tests focus on:
- Basic get/set/merge/delete/find
- Write events (before/after snapshots)
- Optimistic transactions: conflicts re-run the function, bounded attempts
- Copy isolation between callers and the store
"""

import asyncio
from typing import Any, Dict, List, Optional

import pytest

from platelens.domain.shared.errors import TransactionConflictError
from platelens.domain.shared.events import DocumentWritten
from platelens.infrastructure.persistence.in_memory.document_store import (
    InMemoryDocumentStore,
)


@pytest.fixture
def events() -> List[DocumentWritten]:
    return []


@pytest.fixture
def observed_store(events: List[DocumentWritten]) -> InMemoryDocumentStore:
    """Store whose write events are collected in ``events``."""
    return InMemoryDocumentStore(on_write=events.append)


class TestBasicOperations:
    """Test non-transactional operations."""

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self, store: InMemoryDocumentStore) -> None:
        assert await store.get("scan_jobs", "nope") is None

    @pytest.mark.asyncio
    async def test_set_replaces_and_merge_updates(self, store: InMemoryDocumentStore) -> None:
        await store.set("logs", "m1", {"status": "pending_scan", "userId": "u1"})
        await store.set("logs", "m1", {"status": "ready"}, merge=True)

        assert await store.get("logs", "m1") == {"status": "ready", "userId": "u1"}

        await store.set("logs", "m1", {"status": "cancelled"})

        assert await store.get("logs", "m1") == {"status": "cancelled"}

    @pytest.mark.asyncio
    async def test_returned_documents_are_copies(self, store: InMemoryDocumentStore) -> None:
        data: Dict[str, Any] = {"macros": {"p": 1.0}}
        await store.set("logs", "m1", data)
        data["macros"]["p"] = 99.0

        doc = await store.get("logs", "m1")
        assert doc is not None
        doc["macros"]["p"] = 42.0

        assert await store.get("logs", "m1") == {"macros": {"p": 1.0}}

    @pytest.mark.asyncio
    async def test_delete(self, store: InMemoryDocumentStore) -> None:
        await store.set("logs", "m1", {"status": "ready"})

        assert await store.delete("logs", "m1") is True
        assert await store.delete("logs", "m1") is False
        assert await store.get("logs", "m1") is None

    @pytest.mark.asyncio
    async def test_find_by_equality(self, store: InMemoryDocumentStore) -> None:
        await store.set("scan_jobs", "a", {"status": "processing"})
        await store.set("scan_jobs", "b", {"status": "done"})
        await store.set("scan_jobs", "c", {"status": "processing"})

        found = await store.find("scan_jobs", {"status": "processing"})

        assert sorted(doc_id for doc_id, _ in found) == ["a", "c"]

    @pytest.mark.asyncio
    async def test_clear(self, store: InMemoryDocumentStore) -> None:
        await store.set("logs", "m1", {"status": "ready"})
        store.clear()

        assert await store.get("logs", "m1") is None


class TestWriteEvents:
    """Test DocumentWritten emission."""

    @pytest.mark.asyncio
    async def test_set_emits_before_and_after(
        self, observed_store: InMemoryDocumentStore, events: List[DocumentWritten]
    ) -> None:
        await observed_store.set("scan_jobs", "s1", {"status": "queued"})
        await observed_store.set("scan_jobs", "s1", {"status": "processing"}, merge=True)

        assert [(e.before, e.after) for e in events] == [
            (None, {"status": "queued"}),
            ({"status": "queued"}, {"status": "processing"}),
        ]
        assert all(e.collection == "scan_jobs" and e.document_id == "s1" for e in events)

    @pytest.mark.asyncio
    async def test_delete_emits_after_none(
        self, observed_store: InMemoryDocumentStore, events: List[DocumentWritten]
    ) -> None:
        await observed_store.set("logs", "m1", {"status": "ready"})
        await observed_store.delete("logs", "m1")

        assert events[-1].before == {"status": "ready"}
        assert events[-1].after is None

    @pytest.mark.asyncio
    async def test_transaction_emits_only_on_commit(
        self, observed_store: InMemoryDocumentStore, events: List[DocumentWritten]
    ) -> None:
        async def fn(tx: Any) -> str:
            await tx.get("ingredients", "egg")
            tx.set("ingredients", "egg", {"displayName": "Egg"})
            tx.set("image_jobs", "egg", {"status": "queued"})
            assert events == []
            return "ok"

        assert await observed_store.run_transaction(fn) == "ok"
        assert [e.collection for e in events] == ["ingredients", "image_jobs"]

    @pytest.mark.asyncio
    async def test_add_write_listener(self, store: InMemoryDocumentStore) -> None:
        seen: List[DocumentWritten] = []
        store.add_write_listener(seen.append)

        await store.set("logs", "m1", {"status": "ready"})

        assert len(seen) == 1


class TestTransactions:
    """Test optimistic compare-and-set transactions."""

    @pytest.mark.asyncio
    async def test_reads_after_writes_rejected(self, store: InMemoryDocumentStore) -> None:
        async def fn(tx: Any) -> None:
            tx.set("logs", "m1", {"status": "ready"})
            await tx.get("logs", "m1")

        with pytest.raises(RuntimeError):
            await store.run_transaction(fn)
        assert await store.get("logs", "m1") is None

    @pytest.mark.asyncio
    async def test_exception_discards_writes(self, store: InMemoryDocumentStore) -> None:
        async def fn(tx: Any) -> None:
            await tx.get("logs", "m1")
            tx.set("logs", "m1", {"status": "ready"})
            raise ValueError("abort")

        with pytest.raises(ValueError):
            await store.run_transaction(fn)
        assert await store.get("logs", "m1") is None

    @pytest.mark.asyncio
    async def test_conflict_reruns_against_fresh_data(self, store: InMemoryDocumentStore) -> None:
        await store.set("counters", "c", {"value": 0})
        calls = 0

        async def increment(tx: Any) -> int:
            nonlocal calls
            calls += 1
            doc = await tx.get("counters", "c")
            if calls == 1:
                # Concurrent writer sneaks in between read and commit
                await store.set("counters", "c", {"value": 10})
            tx.set("counters", "c", {"value": doc["value"] + 1})
            return doc["value"]

        seen = await store.run_transaction(increment)

        assert calls == 2
        assert seen == 10
        assert await store.get("counters", "c") == {"value": 11}

    @pytest.mark.asyncio
    async def test_concurrent_increments_never_lose_updates(self, store: InMemoryDocumentStore) -> None:
        await store.set("counters", "c", {"value": 0})

        async def increment(tx: Any) -> None:
            doc = await tx.get("counters", "c")
            tx.set("counters", "c", {"value": doc["value"] + 1})

        results = await asyncio.gather(
            *(store.run_transaction(increment) for _ in range(3)), return_exceptions=True
        )
        committed = sum(1 for r in results if not isinstance(r, Exception))

        assert await store.get("counters", "c") == {"value": committed}
        assert committed == 3

    @pytest.mark.asyncio
    async def test_single_winner_for_check_then_set(self, store: InMemoryDocumentStore) -> None:
        await store.set("scan_jobs", "s1", {"status": "queued"})

        async def claim(tx: Any) -> Optional[str]:
            doc = await tx.get("scan_jobs", "s1")
            if doc["status"] != "queued":
                return None
            tx.set("scan_jobs", "s1", {"status": "processing"}, merge=True)
            return "claimed"

        results = await asyncio.gather(*(store.run_transaction(claim) for _ in range(5)))

        assert results.count("claimed") == 1
        assert results.count(None) == 4

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self) -> None:
        store = InMemoryDocumentStore(max_transaction_attempts=3)
        await store.set("counters", "c", {"value": 0})
        calls = 0

        async def always_conflicting(tx: Any) -> None:
            nonlocal calls
            calls += 1
            await tx.get("counters", "c")
            await store.set("counters", "c", {"value": calls})
            tx.set("counters", "c", {"value": -1})

        with pytest.raises(TransactionConflictError):
            await store.run_transaction(always_conflicting)
        assert calls == 3
        assert await store.get("counters", "c") == {"value": 3}
