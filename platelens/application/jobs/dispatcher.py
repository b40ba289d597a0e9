"""Job dispatcher: turns write events into exactly-one processing run.

Events are delivered at least once, so the same "job became queued" write
may reach several dispatch attempts. Each attempt tries to claim the job in
a transaction; only the winner processes it, the others return silently.
"""

import logging
from typing import Any, Dict, Optional, Protocol

from platelens.application.jobs.transitions import compare_and_set_status
from platelens.domain.jobs.status import JobStateMachine
from platelens.domain.shared.events import DocumentWritten
from platelens.domain.shared.ports.document_store import IDocumentStore, ITransaction

logger = logging.getLogger(__name__)


class JobProcessor(Protocol):
    """What a dispatcher needs from a job processor."""

    collection: str
    states: JobStateMachine

    async def on_claim(self, tx: ITransaction, job_id: str, now: str) -> None:
        """Buffer extra writes that must commit together with the claim."""
        ...

    async def process(self, job_id: str, job: Dict[str, Any]) -> None:
        """Run a claimed job to a final status. Must not raise."""
        ...


def _status(doc: Optional[Dict[str, Any]]) -> Optional[str]:
    return doc.get("status") if doc else None


class JobDispatcher:
    """
    Subscribes a processor to its job collection.

    Example:
        >>> dispatcher = JobDispatcher(store, scan_processor)
        >>> queue.subscribe(dispatcher.collection, dispatcher.handle)
    """

    def __init__(self, store: IDocumentStore, processor: JobProcessor):
        self._store = store
        self._processor = processor

    @property
    def collection(self) -> str:
        return self._processor.collection

    def should_process(
        self, before: Optional[Dict[str, Any]], after: Optional[Dict[str, Any]]
    ) -> bool:
        """True iff the write moved the job into its initial (queued) status."""
        if after is None:
            return False
        return self._processor.states.is_entering_initial(_status(before), _status(after))

    async def claim(self, job_id: str) -> Optional[Dict[str, Any]]:
        """
        Claim a queued job.

        One transaction: if the job is still queued, move it to the claimed
        status, increment ``attempts``, clear ``error`` and run the
        processor's claim writes.

        Returns:
            Snapshot of the claimed job, or None if another worker won
        """
        states = self._processor.states
        return await compare_and_set_status(
            self._store,
            self.collection,
            job_id,
            states,
            expected=states.initial,
            target=states.claimed,
            fields={"error": ""},
            extra_writes=self._processor.on_claim,
            increment_attempts=True,
        )

    async def handle(self, event: DocumentWritten) -> None:
        """Job queue handler: claim and process jobs entering ``queued``."""
        if event.collection != self.collection:
            return
        if not self.should_process(event.before, event.after):
            return

        job_id = event.document_id
        claimed = await self.claim(job_id)
        if claimed is None:
            logger.debug(
                "Claim lost, skipping",
                extra={"collection": self.collection, "job_id": job_id},
            )
            return

        logger.info(
            "Job claimed",
            extra={
                "collection": self.collection,
                "job_id": job_id,
                "attempts": claimed.get("attempts"),
            },
        )
        await self._processor.process(job_id, claimed)
