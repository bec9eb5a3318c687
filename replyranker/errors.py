"""
Exception taxonomy for replyranker.

Only genuinely terminal conditions are raised. "Not ready yet" answers from
the results endpoint are never errors and never reach this module.
"""

from typing import Optional


class ReplyRankerError(Exception):
    """Base class for all replyranker errors."""
    pass


class ConfigurationError(ReplyRankerError, ValueError):
    """Invalid settings or missing input, raised before any network call."""
    pass


class SubmissionError(ReplyRankerError):
    """A batch could not be submitted. Fatal to the current submission."""

    def __init__(
        self,
        message: str,
        batch_index: Optional[int] = None,
        total_batches: Optional[int] = None,
        status: Optional[int] = None,
    ):
        self.batch_index = batch_index
        self.total_batches = total_batches
        self.status = status
        if batch_index is not None and total_batches is not None:
            message = f"Batch {batch_index + 1}/{total_batches} submission failed: {message}"
        super().__init__(message)


class PollError(ReplyRankerError):
    """A manual results check hit a real failure; polling was halted."""

    def __init__(self, message: str, job_id: Optional[str] = None):
        self.job_id = job_id
        super().__init__(message)
