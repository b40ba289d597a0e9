"""Unit tests for ImageJobProcessor."""

from typing import Any, Dict
from unittest.mock import AsyncMock, MagicMock

import pytest

from platelens.application.ingredients.resolver import IngredientIdentityResolver
from platelens.application.jobs.dispatcher import JobDispatcher
from platelens.application.jobs.image_processor import INGREDIENT_MISSING_ERROR, ImageJobProcessor
from platelens.domain.ingredient.identity import derive_identity
from platelens.domain.shared.errors import EnrichmentError
from platelens.domain.shared.ports.image_transcoder import TranscodedImage
from platelens.infrastructure.imaging.transcoder import PassthroughTranscoder
from platelens.infrastructure.persistence.in_memory.document_store import (
    InMemoryDocumentStore,
)
from platelens.infrastructure.storage.in_memory import InMemoryBlobStore


@pytest.fixture
def generator() -> AsyncMock:
    mock = AsyncMock()
    mock.generate_ingredient_image.return_value = b"\x89PNG-bytes"
    return mock


@pytest.fixture
def processor(
    store: InMemoryDocumentStore, blob_store: InMemoryBlobStore, generator: AsyncMock
) -> ImageJobProcessor:
    return ImageJobProcessor(store, blob_store, generator, PassthroughTranscoder())


async def _claimed_image_job(
    store: InMemoryDocumentStore, processor: ImageJobProcessor, name: str = "Tomato"
) -> Dict[str, Any]:
    """Resolve ``name`` and claim its queued image job."""
    resolved = await IngredientIdentityResolver(store).ensure(name)
    claimed = await JobDispatcher(store, processor).claim(resolved.id)
    assert claimed is not None
    return claimed


class TestClaim:
    @pytest.mark.asyncio
    async def test_claim_marks_ingredient_generating(
        self, processor: ImageJobProcessor, store: InMemoryDocumentStore
    ) -> None:
        claimed = await _claimed_image_job(store, processor)

        ingredient_id = derive_identity("Tomato").id
        assert claimed["status"] == "generating"
        assert claimed["attempts"] == 1
        assert (await store.get("ingredients", ingredient_id))["imageStatus"] == "generating"


class TestProcess:
    @pytest.mark.asyncio
    async def test_success_marks_ingredient_and_job_ready(
        self,
        processor: ImageJobProcessor,
        store: InMemoryDocumentStore,
        blob_store: InMemoryBlobStore,
        generator: AsyncMock,
    ) -> None:
        ingredient_id = derive_identity("Tomato").id
        job = await _claimed_image_job(store, processor)

        await processor.process(ingredient_id, job)

        generator.generate_ingredient_image.assert_awaited_once_with("Tomato")
        expected_path = f"ingredients/tomato__{ingredient_id}.png"
        assert blob_store.paths() == [expected_path]
        assert blob_store.content_type(expected_path) == "image/png"

        ingredient = await store.get("ingredients", ingredient_id)
        assert ingredient["imageStatus"] == "ready"
        assert ingredient["storagePath"] == expected_path
        assert ingredient["imageUrl"].startswith(f"memory://test-bucket/{expected_path}?token=")
        assert ingredient["imageUrl"].endswith(ingredient["downloadToken"])
        assert ingredient["slug"] == "tomato"
        assert ingredient["lastGeneratedAt"]

        image_job = await store.get("image_jobs", ingredient_id)
        assert image_job["status"] == "ready"
        assert image_job["error"] == ""
        assert image_job["updatedAt"] == ingredient["lastGeneratedAt"]

    @pytest.mark.asyncio
    async def test_transcoder_rewrites_extension(
        self,
        store: InMemoryDocumentStore,
        blob_store: InMemoryBlobStore,
        generator: AsyncMock,
    ) -> None:
        transcoder = MagicMock()
        transcoder.name.return_value = "webp"
        transcoder.target_path.side_effect = lambda path: path[: -len(".png")] + ".webp"
        transcoder.transcode = AsyncMock(return_value=TranscodedImage(data=b"RIFF", content_type="image/webp"))
        processor = ImageJobProcessor(store, blob_store, generator, transcoder)
        ingredient_id = derive_identity("Olive oil").id
        job = await _claimed_image_job(store, processor, name="Olive oil")

        await processor.process(ingredient_id, job)

        transcoder.transcode.assert_awaited_once_with(b"\x89PNG-bytes")
        path = f"ingredients/olive-oil__{ingredient_id}.webp"
        assert blob_store.content_type(path) == "image/webp"
        assert (await store.get("ingredients", ingredient_id))["storagePath"] == path

    @pytest.mark.asyncio
    async def test_existing_storage_path_reused(
        self,
        processor: ImageJobProcessor,
        store: InMemoryDocumentStore,
        blob_store: InMemoryBlobStore,
    ) -> None:
        ingredient_id = derive_identity("Rice").id
        await store.set("ingredients", ingredient_id, {"storagePath": "ingredients/custom-rice.png"})
        job = await _claimed_image_job(store, processor, name="Rice")

        await processor.process(ingredient_id, job)

        assert blob_store.paths() == ["ingredients/custom-rice.png"]

    @pytest.mark.asyncio
    async def test_generation_failure_marks_both_failed(
        self,
        processor: ImageJobProcessor,
        store: InMemoryDocumentStore,
        blob_store: InMemoryBlobStore,
        generator: AsyncMock,
    ) -> None:
        generator.generate_ingredient_image.side_effect = EnrichmentError(
            "OpenAI image generation returned empty response"
        )
        ingredient_id = derive_identity("Tomato").id
        job = await _claimed_image_job(store, processor)

        await processor.process(ingredient_id, job)

        image_job = await store.get("image_jobs", ingredient_id)
        assert image_job["status"] == "failed"
        assert image_job["error"] == "OpenAI image generation returned empty response"
        ingredient = await store.get("ingredients", ingredient_id)
        assert ingredient["imageStatus"] == "failed"
        assert "imageUrl" not in ingredient
        assert blob_store.paths() == []

    @pytest.mark.asyncio
    async def test_failed_ingredient_is_requeued_by_next_scan(
        self, processor: ImageJobProcessor, store: InMemoryDocumentStore, generator: AsyncMock
    ) -> None:
        generator.generate_ingredient_image.side_effect = RuntimeError("rate limited")
        ingredient_id = derive_identity("Tomato").id
        await processor.process(ingredient_id, await _claimed_image_job(store, processor))

        resolved = await IngredientIdentityResolver(store).ensure("Tomato")

        assert resolved.queued is True
        image_job = await store.get("image_jobs", ingredient_id)
        assert image_job["status"] == "queued"
        assert image_job["attempts"] == 1

    @pytest.mark.asyncio
    async def test_missing_ingredient(
        self, processor: ImageJobProcessor, store: InMemoryDocumentStore, generator: AsyncMock
    ) -> None:
        await store.set("image_jobs", "ghost-1234abcd", {"status": "queued", "attempts": 0})
        job = await JobDispatcher(store, processor).claim("ghost-1234abcd")

        await processor.process("ghost-1234abcd", job)

        generator.generate_ingredient_image.assert_not_awaited()
        image_job = await store.get("image_jobs", "ghost-1234abcd")
        assert image_job["status"] == "failed"
        assert image_job["error"] == INGREDIENT_MISSING_ERROR
        ingredient = await store.get("ingredients", "ghost-1234abcd")
        assert ingredient["imageStatus"] == "failed"
