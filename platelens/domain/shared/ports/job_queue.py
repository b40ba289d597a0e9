"""Job queue port.

Replaces document-store triggers with an explicit queue: the store publishes
DocumentWritten events, the queue delivers them (at least once, no ordering
guarantee) to the handlers subscribed for the event's collection.
"""

from typing import Awaitable, Callable, Protocol

from platelens.domain.shared.events import DocumentWritten

EventHandler = Callable[[DocumentWritten], Awaitable[None]]


class IJobQueue(Protocol):
    """Interface for the write-event queue."""

    def subscribe(self, collection: str, handler: EventHandler) -> None:
        """Register ``handler`` for writes to ``collection``."""
        ...

    def publish(self, event: DocumentWritten) -> None:
        """Enqueue an event without waiting for it to be handled."""
        ...
