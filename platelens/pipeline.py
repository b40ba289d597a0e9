"""Composition root for the enrichment pipeline.

Wires the document store, the job queue, the blob store, the enrichment
provider and the thumbnail transcoder into the two job dispatchers. The
store publishes every committed write on the queue; the dispatchers are the
queue's only subscribers.
"""

import logging
from typing import Optional

from platelens.application.ingredients.resolver import IngredientIdentityResolver
from platelens.application.jobs.dispatcher import JobDispatcher
from platelens.application.jobs.image_processor import ImageJobProcessor
from platelens.application.jobs.scan_processor import ScanJobProcessor
from platelens.domain.enrichment.ports import IFoodDetector, IIngredientImageGenerator
from platelens.domain.shared.ports.blob_store import IBlobStore
from platelens.domain.shared.ports.document_store import IDocumentStore
from platelens.domain.shared.ports.image_transcoder import IImageTranscoder
from platelens.infrastructure.ai.factory import create_enrichment_provider
from platelens.infrastructure.config import get_job_worker_concurrency
from platelens.infrastructure.events.in_memory_queue import InMemoryJobQueue
from platelens.infrastructure.imaging.transcoder import create_image_transcoder
from platelens.infrastructure.persistence.factory import create_document_store
from platelens.infrastructure.persistence.mongodb.document_store import MongoDocumentStore
from platelens.infrastructure.storage.factory import create_blob_store

logger = logging.getLogger(__name__)


class EnrichmentPipeline:
    """
    Scan and image job processing bound to one store and one queue.

    Example:
        >>> pipeline = build_pipeline()
        >>> await pipeline.start()
        >>> ...  # request handlers write scan jobs into pipeline.store
        >>> await pipeline.join()
        >>> await pipeline.stop()
    """

    def __init__(
        self,
        store: IDocumentStore,
        queue: InMemoryJobQueue,
        blob_store: IBlobStore,
        detector: IFoodDetector,
        image_generator: IIngredientImageGenerator,
        transcoder: IImageTranscoder,
    ):
        """
        Build processors and dispatchers and subscribe them to the queue.

        Args:
            store: Document store whose writes are published on ``queue``
            queue: Job queue delivering write events
            blob_store: Photo and thumbnail storage
            detector: Food detection provider
            image_generator: Thumbnail generation provider
            transcoder: Thumbnail transcoder chosen at startup
        """
        self.store = store
        self.queue = queue
        self.blob_store = blob_store
        self.resolver = IngredientIdentityResolver(store)
        self.scan_processor = ScanJobProcessor(store, blob_store, detector, self.resolver)
        self.image_processor = ImageJobProcessor(store, blob_store, image_generator, transcoder)
        self.scan_dispatcher = JobDispatcher(store, self.scan_processor)
        self.image_dispatcher = JobDispatcher(store, self.image_processor)

        for dispatcher in (self.scan_dispatcher, self.image_dispatcher):
            queue.subscribe(dispatcher.collection, dispatcher.handle)

        logger.info(
            "Pipeline wired",
            extra={
                "store": type(store).__name__,
                "blob_store": type(blob_store).__name__,
                "detector": type(detector).__name__,
                "transcoder": transcoder.name(),
            },
        )

    async def start(self) -> None:
        await self.queue.start()

    async def join(self, timeout: Optional[float] = None) -> None:
        """Wait until every queued job, and every job it queued, is handled."""
        await self.queue.join(timeout=timeout)

    async def stop(self) -> None:
        await self.queue.stop()
        if isinstance(self.store, MongoDocumentStore):
            await self.store.close()


def build_pipeline() -> EnrichmentPipeline:
    """Create a pipeline from environment configuration."""
    queue = InMemoryJobQueue(concurrency=get_job_worker_concurrency())
    store = create_document_store(on_write=queue.publish)
    provider = create_enrichment_provider()
    return EnrichmentPipeline(
        store=store,
        queue=queue,
        blob_store=create_blob_store(),
        detector=provider,
        image_generator=provider,
        transcoder=create_image_transcoder(),
    )
