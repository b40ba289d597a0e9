"""Exception hierarchy for the enrichment pipeline.

All pipeline exceptions inherit from PipelineError so the processors can
tell expected failures from programming errors when logging.
"""


class PipelineError(Exception):
    """Base exception for the enrichment pipeline."""

    pass


class JobInputError(PipelineError):
    """Raised when a job document lacks a field required for its source.

    Examples:
    - Photo scan without storagePath
    - Text scan without textDescription

    These are data errors: the job fails immediately and is never retried.
    """

    pass


class EnrichmentError(PipelineError):
    """Raised when the enrichment service returns an unusable response.

    Examples:
    - Image generation returned no image payload
    - Retry budget exhausted on a transient error (wrapped by callers)
    """

    pass


class ClaimConflictError(PipelineError):
    """Raised inside a claim or finalize transaction to abort it.

    The job was no longer in the expected status: another worker already
    claimed or finalized it. Callers treat this as a silent no-op.
    """

    def __init__(self, job_id: str, expected: str, actual: object):
        self.job_id = job_id
        self.expected = expected
        self.actual = actual
        super().__init__(f"Job {job_id} is {actual!r}, expected {expected!r}")


class TransactionConflictError(PipelineError):
    """Raised when a store transaction keeps losing its compare-and-set.

    The store retries conflicting transactions a bounded number of times
    before giving up with this error.
    """

    pass


def truncate_error(error: BaseException, limit: int = 500) -> str:
    """Render an exception as a job error message of at most ``limit`` chars."""
    message = str(error) or error.__class__.__name__
    return message[:limit]
