"""Job status values and allowed transitions.

Scan jobs only move forward: queued → processing → {done|failed|cancelled}.
Image jobs follow the same claim shape (queued → generating → {ready|failed})
but may be queued again by the ingredient resolver when a previous attempt
left the ingredient without an image.
"""

from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Mapping, Optional


class ScanJobStatus(str, Enum):
    QUEUED = "queued"
    PROCESSING = "processing"
    DONE = "done"
    FAILED = "failed"
    CANCELLED = "cancelled"


class ImageJobStatus(str, Enum):
    QUEUED = "queued"
    GENERATING = "generating"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class JobStateMachine:
    """
    Transition table for one kind of job document.

    Attributes:
        name: Job kind (used in logs)
        initial: Status set by the job creator
        claimed: Status written by a successful claim
        transitions: Allowed targets per current status
    """

    name: str
    initial: str
    claimed: str
    transitions: Mapping[str, FrozenSet[str]]

    def can_transition(self, current: Optional[str], target: str) -> bool:
        """
        Check whether ``current → target`` is allowed.

        A missing current status (document not created yet) may only move
        to the initial status.

        Example:
            >>> SCAN_JOB_STATES.can_transition("processing", "done")
            True
            >>> SCAN_JOB_STATES.can_transition("done", "queued")
            False
        """
        if current is None:
            return target == self.initial
        return target in self.transitions.get(current, frozenset())

    def is_terminal(self, status: str) -> bool:
        return not self.transitions.get(status)

    def is_entering_initial(self, before: Optional[str], after: Optional[str]) -> bool:
        """True iff a write moved the document *into* the initial status.

        Metadata-only writes to an already-queued document return False.
        """
        return after == self.initial and before != self.initial


SCAN_JOB_STATES = JobStateMachine(
    name="scan",
    initial=ScanJobStatus.QUEUED.value,
    claimed=ScanJobStatus.PROCESSING.value,
    transitions={
        ScanJobStatus.QUEUED.value: frozenset({ScanJobStatus.PROCESSING.value}),
        ScanJobStatus.PROCESSING.value: frozenset(
            {
                ScanJobStatus.DONE.value,
                ScanJobStatus.FAILED.value,
                ScanJobStatus.CANCELLED.value,
            }
        ),
    },
)

IMAGE_JOB_STATES = JobStateMachine(
    name="image",
    initial=ImageJobStatus.QUEUED.value,
    claimed=ImageJobStatus.GENERATING.value,
    transitions={
        ImageJobStatus.QUEUED.value: frozenset({ImageJobStatus.GENERATING.value}),
        ImageJobStatus.GENERATING.value: frozenset(
            {ImageJobStatus.READY.value, ImageJobStatus.FAILED.value}
        ),
        # Regeneration: the resolver re-queues identities still lacking an image
        ImageJobStatus.FAILED.value: frozenset({ImageJobStatus.QUEUED.value}),
        ImageJobStatus.READY.value: frozenset({ImageJobStatus.QUEUED.value}),
    },
)
