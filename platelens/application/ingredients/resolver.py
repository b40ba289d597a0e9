"""Ingredient identity resolver.

Maps a free-text ingredient name onto its shared Ingredient document and
makes sure exactly one thumbnail job exists for it while no image is
available. Everything happens in one store transaction, so concurrent scans
naming the same food converge on a single ingredient and a single queued
ImageJob.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_random,
)

from platelens.domain.ingredient.entities import INGREDIENTS_COLLECTION
from platelens.domain.ingredient.identity import derive_identity
from platelens.domain.jobs.entities import IMAGE_JOBS_COLLECTION
from platelens.domain.jobs.status import IMAGE_JOB_STATES, ImageJobStatus
from platelens.domain.shared.errors import TransactionConflictError
from platelens.domain.shared.ports.document_store import IDocumentStore, ITransaction
from platelens.domain.shared.time import utc_now_iso

logger = logging.getLogger(__name__)

# Retries on top of the store's own per-transaction conflict budget.
RESOLVE_ATTEMPTS = 5
RESOLVE_BACKOFF_MAX_S = 0.05


@dataclass(frozen=True)
class ResolvedIngredient:
    """Identity of a resolved ingredient plus its thumbnail, when ready."""

    id: str
    canonical_name: str
    slug: str
    image_url: Optional[str] = None
    queued: bool = False


class IngredientIdentityResolver:
    """
    Upserts ingredient metadata and enqueues thumbnail generation.

    Example:
        >>> resolver = IngredientIdentityResolver(store)
        >>> resolved = await resolver.ensure("Mozzarella cheese")
        >>> resolved.id
        'mozzarella-cheese-...'
    """

    def __init__(
        self,
        store: IDocumentStore,
        max_attempts: int = RESOLVE_ATTEMPTS,
        backoff_max_s: float = RESOLVE_BACKOFF_MAX_S,
    ):
        self._store = store
        self._max_attempts = max_attempts
        self._backoff_max_s = backoff_max_s

    async def ensure(self, raw_name: str) -> ResolvedIngredient:
        """
        Resolve ``raw_name`` to its ingredient, queueing an image if needed.

        A new ImageJob is queued iff the ingredient has no ``imageUrl`` and
        its job is not already queued or generating. Display metadata is
        always refreshed; ``createdAt`` is preserved.

        Args:
            raw_name: Ingredient name as returned by the detector

        Returns:
            ResolvedIngredient with the image URL when one already exists
        """
        identity = derive_identity(raw_name)

        async def _ensure(tx: ITransaction) -> ResolvedIngredient:
            now = utc_now_iso()
            ingredient = await tx.get(INGREDIENTS_COLLECTION, identity.id)
            job = await tx.get(IMAGE_JOBS_COLLECTION, identity.id)

            image_url = (ingredient or {}).get("imageUrl") or None
            job_status = job.get("status") if job else None
            should_queue = not image_url and IMAGE_JOB_STATES.can_transition(
                job_status, ImageJobStatus.QUEUED.value
            )

            update: Dict[str, Any] = {
                "id": identity.id,
                "displayName": raw_name,
                "canonicalName": identity.canonical_name,
                "slug": identity.slug,
                "updatedAt": now,
                "createdAt": (ingredient or {}).get("createdAt") or now,
            }
            if should_queue:
                update["imageStatus"] = ImageJobStatus.QUEUED.value
            tx.set(INGREDIENTS_COLLECTION, identity.id, update, merge=True)

            if should_queue:
                tx.set(
                    IMAGE_JOBS_COLLECTION,
                    identity.id,
                    {
                        "ingredientId": identity.id,
                        "status": ImageJobStatus.QUEUED.value,
                        "attempts": int((job or {}).get("attempts") or 0),
                        "error": "",
                        "updatedAt": now,
                    },
                    merge=True,
                )

            return ResolvedIngredient(
                id=identity.id,
                canonical_name=identity.canonical_name,
                slug=identity.slug,
                image_url=image_url,
                queued=should_queue,
            )

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_random(0, self._backoff_max_s),
            retry=retry_if_exception_type(TransactionConflictError),
            before_sleep=before_sleep_log(logger, logging.DEBUG),
            reraise=True,
        )
        resolved = await retrying(self._store.run_transaction, _ensure)
        if resolved.queued:
            logger.info(
                "Ingredient image queued",
                extra={"ingredient_id": resolved.id, "display_name": raw_name},
            )
        return resolved
