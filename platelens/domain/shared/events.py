"""Domain events.

Events are immutable records of facts that occurred. The job pipeline is
driven by a single event type, ``DocumentWritten``, emitted by the document
store after every committed write.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import UUID, uuid4


@dataclass(frozen=True)
class DomainEvent:
    """Immutable record of something that already happened.

    Attributes:
        event_id: Unique id of this event instance
        occurred_at: UTC timestamp; naive datetimes are rejected
    """

    event_id: UUID
    occurred_at: datetime

    def __post_init__(self) -> None:
        """Validate event invariants."""
        if self.occurred_at.tzinfo is None:
            raise ValueError("occurred_at must be timezone-aware (use UTC)")


@dataclass(frozen=True)
class DocumentWritten(DomainEvent):
    """A document was created, updated or deleted.

    ``before`` is None for creations, ``after`` is None for deletions.
    Snapshots are copies; handlers may keep them without affecting the store.

    Attributes:
        collection: Collection name (e.g. "scan_jobs")
        document_id: Document key inside the collection
        before: Document contents before the write
        after: Document contents after the write
    """

    collection: str
    document_id: str
    before: Optional[Dict[str, Any]]
    after: Optional[Dict[str, Any]]

    @classmethod
    def create(
        cls,
        collection: str,
        document_id: str,
        before: Optional[Dict[str, Any]],
        after: Optional[Dict[str, Any]],
    ) -> "DocumentWritten":
        """Factory stamping a fresh event id and the current UTC time."""
        return cls(
            event_id=uuid4(),
            occurred_at=datetime.now(timezone.utc),
            collection=collection,
            document_id=document_id,
            before=before,
            after=after,
        )
