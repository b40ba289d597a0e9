"""Compare-and-set status transitions for job documents.

Claims and finalizations share one rule: a job moves to its next status only
if it is still in the status the caller expects. Writes that lose the race
are skipped, never forced.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from platelens.domain.jobs.status import JobStateMachine
from platelens.domain.shared.errors import ClaimConflictError
from platelens.domain.shared.ports.document_store import IDocumentStore, ITransaction
from platelens.domain.shared.time import utc_now_iso

logger = logging.getLogger(__name__)

ExtraWrites = Callable[[ITransaction, str, str], Awaitable[None]]


async def compare_and_set_status(
    store: IDocumentStore,
    collection: str,
    job_id: str,
    states: JobStateMachine,
    expected: str,
    target: str,
    fields: Optional[Dict[str, Any]] = None,
    extra_writes: Optional[ExtraWrites] = None,
    increment_attempts: bool = False,
) -> Optional[Dict[str, Any]]:
    """
    Move ``job_id`` from ``expected`` to ``target`` in one transaction.

    Args:
        store: Document store
        collection: Job collection
        job_id: Job document key
        states: State machine the transition must respect
        expected: Status the job must currently have
        target: Status to write
        fields: Extra job fields to merge (error, attempts, ...)
        extra_writes: Coroutine ``(tx, job_id, now)`` buffering writes to
            other documents in the same transaction
        increment_attempts: Add one to the job's ``attempts`` counter

    Returns:
        The job document as written, or None if the job was missing or no
        longer in ``expected`` status

    Raises:
        ValueError: If ``expected → target`` is not an allowed transition
    """
    if not states.can_transition(expected, target):
        raise ValueError(f"Illegal {states.name} job transition {expected} -> {target}")

    async def _transition(tx: ITransaction) -> Dict[str, Any]:
        now = utc_now_iso()
        job = await tx.get(collection, job_id)
        actual = job.get("status") if job else None
        if actual != expected:
            raise ClaimConflictError(job_id, expected, actual)

        update: Dict[str, Any] = {"status": target, "updatedAt": now}
        update.update(fields or {})
        if increment_attempts:
            update["attempts"] = int(job.get("attempts") or 0) + 1
        tx.set(collection, job_id, update, merge=True)
        if extra_writes is not None:
            await extra_writes(tx, job_id, now)
        return {**job, **update}

    try:
        return await store.run_transaction(_transition)
    except ClaimConflictError as e:
        logger.debug(
            "Job transition skipped",
            extra={
                "collection": collection,
                "job_id": job_id,
                "expected": e.expected,
                "actual": e.actual,
                "target": target,
            },
        )
        return None
