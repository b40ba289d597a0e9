"""Ingredient image job processor.

Generates, transcodes and uploads the thumbnail of one ingredient. The
claim marks the ingredient ``generating``; on success the ingredient and the
job become ``ready`` in a single transaction, on failure both become
``failed``. A failed ingredient is re-queued the next time a scan resolves
it.
"""

import logging
from typing import Any, Dict

from platelens.application.jobs.transitions import compare_and_set_status
from platelens.domain.enrichment.ports import IIngredientImageGenerator
from platelens.domain.ingredient.entities import INGREDIENTS_COLLECTION, Ingredient
from platelens.domain.ingredient.identity import derive_identity
from platelens.domain.jobs.entities import IMAGE_JOBS_COLLECTION
from platelens.domain.jobs.status import IMAGE_JOB_STATES, ImageJobStatus
from platelens.domain.shared.errors import truncate_error
from platelens.domain.shared.ports.blob_store import IBlobStore, StoredBlob
from platelens.domain.shared.ports.document_store import IDocumentStore, ITransaction
from platelens.domain.shared.ports.image_transcoder import IImageTranscoder

logger = logging.getLogger(__name__)

INGREDIENT_MISSING_ERROR = "Ingredient doc missing"


class ImageJobProcessor:
    """Processor for ``image_jobs`` documents (keyed by ingredient id)."""

    collection = IMAGE_JOBS_COLLECTION
    states = IMAGE_JOB_STATES

    def __init__(
        self,
        store: IDocumentStore,
        blob_store: IBlobStore,
        generator: IIngredientImageGenerator,
        transcoder: IImageTranscoder,
    ):
        self._store = store
        self._blob_store = blob_store
        self._generator = generator
        self._transcoder = transcoder

    async def on_claim(self, tx: ITransaction, job_id: str, now: str) -> None:
        tx.set(
            INGREDIENTS_COLLECTION,
            job_id,
            {"imageStatus": ImageJobStatus.GENERATING.value, "updatedAt": now},
            merge=True,
        )

    async def process(self, job_id: str, job: Dict[str, Any]) -> None:
        """Generate the thumbnail for a claimed job. Never raises."""
        doc = await self._store.get(INGREDIENTS_COLLECTION, job_id)
        if doc is None or not (doc.get("canonicalName") or doc.get("displayName")):
            logger.error("Ingredient missing for image job", extra={"ingredient_id": job_id})
            await self._mark_failed(job_id, INGREDIENT_MISSING_ERROR)
            return

        ingredient = Ingredient.from_document(job_id, doc)
        try:
            blob = await self._generate_and_upload(ingredient)
            await self._mark_ready(ingredient, blob)
        except Exception as e:
            logger.error(
                "Ingredient image generation failed",
                extra={"ingredient_id": job_id, "error": str(e), "error_type": type(e).__name__},
                exc_info=True,
            )
            await self._mark_failed(job_id, truncate_error(e))

    async def _generate_and_upload(self, ingredient: Ingredient) -> StoredBlob:
        display_name = ingredient.display_name or ingredient.canonical_name
        identity = derive_identity(ingredient.canonical_name or display_name)
        storage_path = self._transcoder.target_path(ingredient.storage_path or identity.filename)

        logger.info(
            "Generating ingredient image",
            extra={
                "ingredient_id": ingredient.id,
                "display_name": display_name,
                "storage_path": storage_path,
                "transcoder": self._transcoder.name(),
            },
        )

        raw = await self._generator.generate_ingredient_image(display_name)
        image = await self._transcoder.transcode(raw)
        return await self._blob_store.upload(storage_path, image.data, image.content_type)

    async def _mark_ready(self, ingredient: Ingredient, blob: StoredBlob) -> None:
        slug = ingredient.slug or derive_identity(ingredient.canonical_name).slug

        async def _ingredient_ready(tx: ITransaction, ingredient_id: str, now: str) -> None:
            tx.set(
                INGREDIENTS_COLLECTION,
                ingredient_id,
                {
                    "imageUrl": blob.url,
                    "storagePath": blob.path,
                    "downloadToken": blob.token,
                    "slug": slug,
                    "imageStatus": ImageJobStatus.READY.value,
                    "lastGeneratedAt": now,
                    "updatedAt": now,
                },
                merge=True,
            )

        written = await compare_and_set_status(
            self._store,
            self.collection,
            ingredient.id,
            self.states,
            expected=self.states.claimed,
            target=ImageJobStatus.READY.value,
            fields={"error": ""},
            extra_writes=_ingredient_ready,
        )
        if written is None:
            logger.warning(
                "Image job no longer generating, result discarded",
                extra={"ingredient_id": ingredient.id, "storage_path": blob.path},
            )
            return
        logger.info(
            "Ingredient image ready",
            extra={"ingredient_id": ingredient.id, "storage_path": blob.path},
        )

    async def _mark_failed(self, job_id: str, error: str) -> None:
        async def _ingredient_failed(tx: ITransaction, ingredient_id: str, now: str) -> None:
            tx.set(
                INGREDIENTS_COLLECTION,
                ingredient_id,
                {"imageStatus": ImageJobStatus.FAILED.value, "updatedAt": now},
                merge=True,
            )

        await compare_and_set_status(
            self._store,
            self.collection,
            job_id,
            self.states,
            expected=self.states.claimed,
            target=ImageJobStatus.FAILED.value,
            fields={"error": error},
            extra_writes=_ingredient_failed,
        )
