"""In-memory job queue implementation.

Turns document writes into handler invocations, standing in for
document-store triggers. Delivery is at-least-once: a handler that raises is
re-invoked with the same event up to ``max_deliveries`` times. Handlers run
concurrently on a pool of asyncio workers with no ordering guarantee, so they
must be idempotent (the job dispatchers are, through their claim
transaction).
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from platelens.domain.shared.events import DocumentWritten
from platelens.domain.shared.ports.job_queue import EventHandler

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Delivery:
    event: DocumentWritten
    handler: EventHandler
    attempt: int = 1


class InMemoryJobQueue:
    """
    In-memory implementation of IJobQueue port.

    Persistence: pending events are lost on process restart (in-memory only)
    Error handling: failed handlers are redelivered, then dropped with an
    error log; one failing handler never blocks the others

    Example:
        >>> queue = InMemoryJobQueue(concurrency=4)
        >>> queue.subscribe("scan_jobs", scan_dispatcher.handle)
        >>> await queue.start()
        >>> queue.publish(DocumentWritten.create("scan_jobs", "scan-1", None, doc))
        >>> await queue.join()
    """

    def __init__(self, concurrency: int = 4, max_deliveries: int = 3) -> None:
        """
        Initialize queue with empty handler registry.

        Args:
            concurrency: Number of worker tasks consuming the queue
            max_deliveries: Attempts per (event, handler) before dropping it
        """
        self._handlers: Dict[str, List[EventHandler]] = {}
        self._queue: asyncio.Queue[_Delivery] = asyncio.Queue()
        self._concurrency = concurrency
        self._max_deliveries = max_deliveries
        self._workers: List[asyncio.Task[None]] = []

    @property
    def running(self) -> bool:
        return bool(self._workers)

    def subscribe(self, collection: str, handler: EventHandler) -> None:
        """
        Subscribe a handler to writes on a collection.

        Note:
            - Same handler can be subscribed multiple times (will be called multiple times)
        """
        self._handlers.setdefault(collection, []).append(handler)
        logger.debug(
            "Handler subscribed",
            extra={"collection": collection, "handler": getattr(handler, "__name__", repr(handler))},
        )

    def publish(self, event: DocumentWritten) -> None:
        """Enqueue one delivery per subscribed handler (non-blocking)."""
        handlers = self._handlers.get(event.collection, [])
        if not handlers:
            return
        for handler in handlers:
            self._queue.put_nowait(_Delivery(event=event, handler=handler))

    def pending(self) -> int:
        return self._queue.qsize()

    async def start(self) -> None:
        """Start the worker pool."""
        if self._workers:
            logger.warning("Job queue already running")
            return
        self._workers = [
            asyncio.create_task(self._worker_loop(i), name=f"job-queue-worker-{i}")
            for i in range(self._concurrency)
        ]
        logger.info("Job queue started", extra={"workers": self._concurrency})

    async def stop(self) -> None:
        """Cancel the workers; undelivered events stay in the queue."""
        workers, self._workers = self._workers, []
        for task in workers:
            task.cancel()
        await asyncio.gather(*workers, return_exceptions=True)
        logger.info("Job queue stopped", extra={"pending": self.pending()})

    async def join(self, timeout: Optional[float] = None) -> None:
        """Wait until every delivered event (and the ones it caused) is handled."""
        if timeout is None:
            await self._queue.join()
        else:
            await asyncio.wait_for(self._queue.join(), timeout=timeout)

    async def _worker_loop(self, worker_id: int) -> None:
        while True:
            delivery = await self._queue.get()
            try:
                await self._deliver(delivery, worker_id)
            finally:
                self._queue.task_done()

    async def _deliver(self, delivery: _Delivery, worker_id: int) -> None:
        event = delivery.event
        handler_name = getattr(delivery.handler, "__name__", repr(delivery.handler))
        try:
            await delivery.handler(event)
        except Exception as e:
            if delivery.attempt < self._max_deliveries:
                logger.warning(
                    "Event handler failed, redelivering",
                    extra={
                        "collection": event.collection,
                        "document_id": event.document_id,
                        "handler": handler_name,
                        "attempt": delivery.attempt,
                        "error": str(e),
                    },
                )
                self._queue.put_nowait(
                    _Delivery(event=event, handler=delivery.handler, attempt=delivery.attempt + 1)
                )
            else:
                logger.error(
                    "Event handler failed, dropping event",
                    extra={
                        "collection": event.collection,
                        "document_id": event.document_id,
                        "handler": handler_name,
                        "attempts": delivery.attempt,
                        "worker": worker_id,
                        "error": str(e),
                    },
                    exc_info=True,
                )
