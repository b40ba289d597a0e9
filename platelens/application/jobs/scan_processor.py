"""Scan job processor.

Runs a claimed scan job to a final status:

1. Bail out (``cancelled``) if the parent meal was deleted or cancelled
2. Detect dish and ingredients from the photo or text
3. Resolve every ingredient to its shared identity (may queue thumbnails)
4. Aggregate nutrition totals
5. Project the result onto the meal (``ready``) and finish the job (``done``)

Any failure finishes the job as ``failed``; the meal stays ``pending_scan``.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from platelens.application.ingredients.resolver import IngredientIdentityResolver
from platelens.application.jobs.transitions import compare_and_set_status
from platelens.domain.enrichment.entities import FoodDetectionResult
from platelens.domain.enrichment.ports import IFoodDetector
from platelens.domain.jobs.entities import SCAN_JOBS_COLLECTION, ScanJob, ScanSource
from platelens.domain.jobs.status import SCAN_JOB_STATES, ScanJobStatus
from platelens.domain.meal.entities import MEALS_COLLECTION, IngredientLine, MealStatus
from platelens.domain.nutrition.aggregator import merge_totals
from platelens.domain.shared.errors import JobInputError, truncate_error
from platelens.domain.shared.ports.blob_store import IBlobStore
from platelens.domain.shared.ports.document_store import IDocumentStore, ITransaction
from platelens.domain.shared.time import utc_now_iso

logger = logging.getLogger(__name__)

MEAL_DELETED_ERROR = "Meal deleted before scan finished"
MEAL_CANCELLED_ERROR = "Meal cancelled"


def _content_type_for(path: str) -> str:
    lower = path.lower()
    if lower.endswith(".png"):
        return "image/png"
    if lower.endswith(".webp"):
        return "image/webp"
    return "image/jpeg"


class ScanJobProcessor:
    """
    Processor for ``scan_jobs`` documents.

    Example:
        >>> processor = ScanJobProcessor(store, blob_store, detector, resolver)
        >>> dispatcher = JobDispatcher(store, processor)
    """

    collection = SCAN_JOBS_COLLECTION
    states = SCAN_JOB_STATES

    def __init__(
        self,
        store: IDocumentStore,
        blob_store: IBlobStore,
        detector: IFoodDetector,
        resolver: IngredientIdentityResolver,
    ):
        self._store = store
        self._blob_store = blob_store
        self._detector = detector
        self._resolver = resolver

    async def on_claim(self, tx: ITransaction, job_id: str, now: str) -> None:
        return None

    async def process(self, job_id: str, job: Dict[str, Any]) -> None:
        """Process a claimed scan job. Never raises."""
        try:
            await self._run(ScanJob.from_document(job_id, job))
        except Exception as e:
            logger.error(
                "Scan job failed",
                extra={"scan_id": job_id, "error": str(e), "error_type": type(e).__name__},
                exc_info=not isinstance(e, JobInputError),
            )
            await self._finish(job_id, ScanJobStatus.FAILED.value, truncate_error(e))

    async def _run(self, scan: ScanJob) -> None:
        if scan.meal_id and not await self._meal_is_active(scan):
            return

        result = await self._detect(scan)
        lines = await self._resolve_ingredients(result)
        totals = merge_totals(line.nutrition() for line in lines)

        if scan.meal_id:
            meal_update: Dict[str, Any] = {
                "status": MealStatus.READY.value,
                "dishTitle": result.dish_title,
                "ingredientsList": [line.to_document() for line in lines],
                "totalCalories": totals.calories,
                "macros": totals.macros.to_document(),
                "confidence": result.confidence,
                "scanId": scan.id,
                "updatedAt": utc_now_iso(),
            }
            if scan.source is ScanSource.PHOTO and scan.storage_path:
                meal_update["imageStoragePath"] = scan.storage_path
            await self._store.set(MEALS_COLLECTION, scan.meal_id, meal_update, merge=True)

        await self._finish(scan.id, ScanJobStatus.DONE.value, "")
        logger.info(
            "Scan job done",
            extra={
                "scan_id": scan.id,
                "meal_id": scan.meal_id,
                "dish_title": result.dish_title,
                "ingredient_count": len(lines),
                "total_calories": totals.calories,
            },
        )

    async def _meal_is_active(self, scan: ScanJob) -> bool:
        meal = await self._store.get(MEALS_COLLECTION, scan.meal_id)
        if meal is None:
            reason = MEAL_DELETED_ERROR
        elif meal.get("status") == MealStatus.CANCELLED.value:
            reason = MEAL_CANCELLED_ERROR
        else:
            return True

        logger.info(
            "Scan job cancelled",
            extra={"scan_id": scan.id, "meal_id": scan.meal_id, "reason": reason},
        )
        await self._finish(scan.id, ScanJobStatus.CANCELLED.value, reason)
        return False

    async def _detect(self, scan: ScanJob) -> FoodDetectionResult:
        if scan.source is ScanSource.TEXT:
            if not scan.text_description:
                raise JobInputError("Missing textDescription for text scan")
            return await self._detector.detect_from_text(scan.text_description)

        if not scan.storage_path:
            raise JobInputError("Missing storagePath for photo scan")
        image = await self._blob_store.download(scan.storage_path)
        return await self._detector.detect_from_image(
            image, content_type=_content_type_for(scan.storage_path)
        )

    async def _resolve_ingredients(self, result: FoodDetectionResult) -> List[IngredientLine]:
        resolved = await asyncio.gather(
            *(self._resolver.ensure(ingredient.name) for ingredient in result.ingredients)
        )
        return [
            IngredientLine.from_detected(ingredient, ingredient_id=r.id, image_url=r.image_url)
            for ingredient, r in zip(result.ingredients, resolved)
        ]

    async def _finish(self, job_id: str, status: str, error: str) -> Optional[Dict[str, Any]]:
        finished = await compare_and_set_status(
            self._store,
            self.collection,
            job_id,
            self.states,
            expected=self.states.claimed,
            target=status,
            fields={"error": error},
        )
        if finished is None:
            logger.warning(
                "Scan job no longer processing, final status not written",
                extra={"scan_id": job_id, "status": status},
            )
        return finished
