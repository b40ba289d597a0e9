"""Unit tests for compare_and_set_status."""

import pytest

from platelens.application.jobs.transitions import compare_and_set_status
from platelens.domain.jobs.status import IMAGE_JOB_STATES, SCAN_JOB_STATES
from platelens.infrastructure.persistence.in_memory.document_store import (
    InMemoryDocumentStore,
)


class TestCompareAndSetStatus:
    @pytest.mark.asyncio
    async def test_moves_expected_status(self, store: InMemoryDocumentStore) -> None:
        await store.set("scan_jobs", "s1", {"status": "processing", "attempts": 1, "source": "text"})

        written = await compare_and_set_status(
            store, "scan_jobs", "s1", SCAN_JOB_STATES, "processing", "done", fields={"error": ""}
        )

        assert written["status"] == "done"
        assert written["source"] == "text"
        doc = await store.get("scan_jobs", "s1")
        assert doc["status"] == "done"
        assert doc["error"] == ""
        assert doc["attempts"] == 1

    @pytest.mark.asyncio
    async def test_unexpected_status_is_noop(self, store: InMemoryDocumentStore) -> None:
        await store.set("scan_jobs", "s1", {"status": "failed", "error": "lease"})

        written = await compare_and_set_status(
            store, "scan_jobs", "s1", SCAN_JOB_STATES, "processing", "done", fields={"error": ""}
        )

        assert written is None
        assert await store.get("scan_jobs", "s1") == {"status": "failed", "error": "lease"}

    @pytest.mark.asyncio
    async def test_missing_job_is_noop(self, store: InMemoryDocumentStore) -> None:
        assert (
            await compare_and_set_status(store, "scan_jobs", "nope", SCAN_JOB_STATES, "queued", "processing")
            is None
        )
        assert await store.get("scan_jobs", "nope") is None

    @pytest.mark.asyncio
    async def test_illegal_transition_raises(self, store: InMemoryDocumentStore) -> None:
        with pytest.raises(ValueError, match="Illegal scan job transition"):
            await compare_and_set_status(store, "scan_jobs", "s1", SCAN_JOB_STATES, "done", "queued")

    @pytest.mark.asyncio
    async def test_increment_attempts(self, store: InMemoryDocumentStore) -> None:
        await store.set("image_jobs", "i1", {"status": "queued", "attempts": 2})

        written = await compare_and_set_status(
            store, "image_jobs", "i1", IMAGE_JOB_STATES, "queued", "generating", increment_attempts=True
        )

        assert written["attempts"] == 3

    @pytest.mark.asyncio
    async def test_extra_writes_commit_together(self, store: InMemoryDocumentStore) -> None:
        await store.set("image_jobs", "i1", {"status": "generating"})
        seen = []

        async def extra(tx, job_id: str, now: str) -> None:
            seen.append(job_id)
            tx.set("ingredients", job_id, {"imageStatus": "ready", "updatedAt": now}, merge=True)

        await compare_and_set_status(
            store, "image_jobs", "i1", IMAGE_JOB_STATES, "generating", "ready", extra_writes=extra
        )

        job = await store.get("image_jobs", "i1")
        ingredient = await store.get("ingredients", "i1")
        assert seen == ["i1"]
        assert ingredient["imageStatus"] == "ready"
        assert ingredient["updatedAt"] == job["updatedAt"]

    @pytest.mark.asyncio
    async def test_extra_writes_skipped_on_conflict(self, store: InMemoryDocumentStore) -> None:
        await store.set("image_jobs", "i1", {"status": "failed"})

        async def extra(tx, job_id: str, now: str) -> None:
            tx.set("ingredients", job_id, {"imageStatus": "ready"}, merge=True)

        await compare_and_set_status(
            store, "image_jobs", "i1", IMAGE_JOB_STATES, "generating", "ready", extra_writes=extra
        )

        assert await store.get("ingredients", "i1") is None
