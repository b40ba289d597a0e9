"""Staleness sweep for jobs abandoned mid-processing.

A worker that crashes after claiming a job leaves it ``processing`` (scan)
or ``generating`` (image) forever, since only a write *into* ``queued``
triggers dispatch. The sweep fails such jobs once their ``updatedAt`` is
older than the lease, through the same compare-and-set used to finalize
them, so a job that finishes meanwhile is left untouched.
"""

import logging
from datetime import timedelta
from typing import Dict, Optional

from platelens.application.jobs.transitions import compare_and_set_status
from platelens.domain.ingredient.entities import INGREDIENTS_COLLECTION
from platelens.domain.jobs.entities import IMAGE_JOBS_COLLECTION, SCAN_JOBS_COLLECTION
from platelens.domain.jobs.status import (
    IMAGE_JOB_STATES,
    SCAN_JOB_STATES,
    ImageJobStatus,
    JobStateMachine,
    ScanJobStatus,
)
from platelens.domain.shared.ports.document_store import IDocumentStore, ITransaction
from platelens.domain.shared.time import iso_to_datetime, utc_now

logger = logging.getLogger(__name__)

LEASE_EXPIRED_ERROR = "Job lease expired"


async def _ingredient_failed(tx: ITransaction, ingredient_id: str, now: str) -> None:
    tx.set(
        INGREDIENTS_COLLECTION,
        ingredient_id,
        {"imageStatus": ImageJobStatus.FAILED.value, "updatedAt": now},
        merge=True,
    )


class StaleJobSweeper:
    """
    Fails claimed jobs whose lease has expired.

    Example:
        >>> sweeper = StaleJobSweeper(store, lease_seconds=900)
        >>> await sweeper.run()
        {'scan_jobs': 0, 'image_jobs': 1}
    """

    def __init__(self, store: IDocumentStore, lease_seconds: int = 900):
        self._store = store
        self._lease = timedelta(seconds=lease_seconds)

    async def run(self) -> Dict[str, int]:
        """Sweep both job collections; returns the number of jobs failed per collection."""
        swept = {
            SCAN_JOBS_COLLECTION: await self._sweep(
                SCAN_JOBS_COLLECTION, SCAN_JOB_STATES, ScanJobStatus.FAILED.value
            ),
            IMAGE_JOBS_COLLECTION: await self._sweep(
                IMAGE_JOBS_COLLECTION, IMAGE_JOB_STATES, ImageJobStatus.FAILED.value
            ),
        }
        if any(swept.values()):
            logger.warning("Stale jobs failed", extra={"swept": swept})
        else:
            logger.debug("No stale jobs")
        return swept

    async def _sweep(self, collection: str, states: JobStateMachine, failed: str) -> int:
        cutoff = utc_now() - self._lease
        count = 0
        for job_id, job in await self._store.find(collection, {"status": states.claimed}):
            updated_at: Optional[str] = job.get("updatedAt")
            if updated_at and iso_to_datetime(updated_at) > cutoff:
                continue

            written = await compare_and_set_status(
                self._store,
                collection,
                job_id,
                states,
                expected=states.claimed,
                target=failed,
                fields={"error": LEASE_EXPIRED_ERROR},
                extra_writes=_ingredient_failed if collection == IMAGE_JOBS_COLLECTION else None,
            )
            if written is not None:
                count += 1
                logger.info(
                    "Stale job failed",
                    extra={"collection": collection, "job_id": job_id, "updated_at": updated_at},
                )
        return count
