"""Job documents and their state machines."""

from platelens.domain.jobs.entities import ImageJob, ScanJob, ScanSource
from platelens.domain.jobs.status import (
    IMAGE_JOB_STATES,
    SCAN_JOB_STATES,
    ImageJobStatus,
    JobStateMachine,
    ScanJobStatus,
)

__all__ = [
    "ImageJob",
    "ScanJob",
    "ScanSource",
    "IMAGE_JOB_STATES",
    "SCAN_JOB_STATES",
    "ImageJobStatus",
    "JobStateMachine",
    "ScanJobStatus",
]
