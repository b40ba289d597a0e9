"""Scan request commands and handlers.

Request handlers only write documents; the pipeline reacts to those writes.
Submitting a scan creates a ``pending_scan`` meal first and then the
``queued`` scan job, so the processor always finds the meal it projects on.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Optional

from platelens.domain.jobs.entities import SCAN_JOBS_COLLECTION, ScanJob, ScanSource
from platelens.domain.jobs.status import ScanJobStatus
from platelens.domain.meal.entities import MEALS_COLLECTION, MealLog, MealStatus
from platelens.domain.shared.errors import JobInputError
from platelens.domain.shared.ports.document_store import IDocumentStore
from platelens.domain.shared.time import utc_now_iso

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubmitScanCommand:
    """
    Command: Queue a meal scan.

    Attributes:
        source: PHOTO or TEXT
        storage_path: Blob path of an already uploaded photo (PHOTO)
        text_description: Free-text meal description (TEXT)
        user_id: Owner of the meal
        meal_id: Existing meal id to reuse (a new one is generated otherwise)
    """

    source: ScanSource
    storage_path: Optional[str] = None
    text_description: Optional[str] = None
    user_id: Optional[str] = None
    meal_id: Optional[str] = None


class SubmitScanCommandHandler:
    """Handler for SubmitScanCommand."""

    def __init__(self, store: IDocumentStore):
        self._store = store

    async def handle(self, command: SubmitScanCommand) -> ScanJob:
        """
        Create the pending meal and the queued scan job.

        Raises:
            JobInputError: If the field required by ``source`` is missing
        """
        if command.source is ScanSource.TEXT and not (command.text_description or "").strip():
            raise JobInputError("textDescription is required for text scans")
        if command.source is ScanSource.PHOTO and not command.storage_path:
            raise JobInputError("storagePath is required for photo scans")

        now = utc_now_iso()
        meal_id = command.meal_id or str(uuid.uuid4())
        scan = ScanJob(
            id=str(uuid.uuid4()),
            status=ScanJobStatus.QUEUED.value,
            source=command.source,
            meal_id=meal_id,
            storage_path=command.storage_path,
            text_description=command.text_description,
            user_id=command.user_id,
            created_at=now,
            updated_at=now,
        )
        meal = MealLog(
            id=meal_id,
            status=MealStatus.PENDING_SCAN.value,
            user_id=command.user_id,
            scan_id=scan.id,
            created_at=now,
            updated_at=now,
        )

        await self._store.set(MEALS_COLLECTION, meal.id, meal.to_document())
        await self._store.set(SCAN_JOBS_COLLECTION, scan.id, scan.to_document())

        logger.info(
            "Scan submitted",
            extra={
                "scan_id": scan.id,
                "meal_id": meal_id,
                "source": command.source.value,
                "user_id": command.user_id,
            },
        )
        return scan


@dataclass(frozen=True)
class CancelMealCommand:
    """Command: Cancel a meal whose scan may still be in flight."""

    meal_id: str


class CancelMealCommandHandler:
    """Handler for CancelMealCommand."""

    def __init__(self, store: IDocumentStore):
        self._store = store

    async def handle(self, command: CancelMealCommand) -> bool:
        """
        Mark the meal ``cancelled``.

        Only honoured by a scan that has not started processing yet.

        Returns:
            False if the meal does not exist
        """
        meal = await self._store.get(MEALS_COLLECTION, command.meal_id)
        if meal is None:
            return False

        await self._store.set(
            MEALS_COLLECTION,
            command.meal_id,
            {"status": MealStatus.CANCELLED.value, "updatedAt": utc_now_iso()},
            merge=True,
        )
        logger.info("Meal cancelled", extra={"meal_id": command.meal_id})
        return True
