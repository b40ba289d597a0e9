"""Integration test fixtures.

A fully wired pipeline on in-memory adapters: real store transactions, real
queue workers, the stub provider for detection and thumbnails. The image
generator is wrapped in a mock so tests can count generation calls.
"""

from typing import AsyncIterator
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from platelens.infrastructure.ai.stub_provider import StubEnrichmentProvider
from platelens.infrastructure.events.in_memory_queue import InMemoryJobQueue
from platelens.infrastructure.imaging.transcoder import PassthroughTranscoder
from platelens.infrastructure.persistence.in_memory.document_store import (
    InMemoryDocumentStore,
)
from platelens.infrastructure.storage.in_memory import InMemoryBlobStore
from platelens.pipeline import EnrichmentPipeline


@pytest.fixture
def provider() -> StubEnrichmentProvider:
    return StubEnrichmentProvider()


@pytest.fixture
def detector(provider: StubEnrichmentProvider) -> MagicMock:
    mock = MagicMock()
    mock.detect_from_text = AsyncMock(side_effect=provider.detect_from_text)
    mock.detect_from_image = AsyncMock(side_effect=provider.detect_from_image)
    return mock


@pytest.fixture
def image_generator(provider: StubEnrichmentProvider) -> MagicMock:
    mock = MagicMock()
    mock.generate_ingredient_image = AsyncMock(side_effect=provider.generate_ingredient_image)
    return mock


@pytest_asyncio.fixture
async def pipeline(detector: MagicMock, image_generator: MagicMock) -> AsyncIterator[EnrichmentPipeline]:
    """Wired pipeline, not started: tests decide when workers begin consuming."""
    queue = InMemoryJobQueue(concurrency=4)
    store = InMemoryDocumentStore(on_write=queue.publish)
    active = EnrichmentPipeline(
        store=store,
        queue=queue,
        blob_store=InMemoryBlobStore(bucket="it-bucket"),
        detector=detector,
        image_generator=image_generator,
        transcoder=PassthroughTranscoder(),
    )
    yield active
    await active.stop()
