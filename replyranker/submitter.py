"""
Sequential batch submission.

Batches go out one at a time in index order, which bounds load on the
scorer and keeps progress reporting monotonic. The first failure stops the
sequence; jobs already accepted keep their identifiers.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Sequence

from .batcher import Batch, FileMetadata
from .errors import SubmissionError
from .logger import get_logger
from .models import Job

logger = get_logger()

PARSE_PROGRESS = 25
MAX_PARTIAL_PROGRESS = 99

ProgressCallback = Callable[[int], None]


class PartialSubmissionPolicy(str, Enum):
    """What to do with already-accepted jobs when a later batch fails."""

    RESUME = "resume"    # keep them; they can still be polled
    ABANDON = "abandon"  # forget them


@dataclass
class SubmissionReport:
    total_batches: int
    jobs: List[Job] = field(default_factory=list)
    error: Optional[SubmissionError] = None
    policy: Optional[PartialSubmissionPolicy] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def failed_batch_index(self) -> Optional[int]:
        return self.error.batch_index if self.error is not None else None

    @property
    def job_ids(self) -> List[str]:
        return [job.id for job in self.jobs]

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error


def submission_progress(submitted: int, total: int) -> int:
    """
    Percent complete after `submitted` of `total` batches.

    The first PARSE_PROGRESS percent covers parsing and chunking. The rest
    grows linearly and stays below 100 until finish() reports completion.
    """
    if total <= 0:
        return PARSE_PROGRESS
    value = PARSE_PROGRESS + (100 - PARSE_PROGRESS) * submitted // total
    return min(value, MAX_PARTIAL_PROGRESS)


class JobSubmitter:
    def __init__(self, client, on_progress: Optional[ProgressCallback] = None):
        self.client = client
        self.on_progress = on_progress
        self._progress = 0

    @property
    def progress(self) -> int:
        return self._progress

    def _report(self, value: int) -> None:
        # never step backwards
        if value <= self._progress:
            return
        self._progress = value
        if self.on_progress:
            self.on_progress(value)

    def submit(self, batch: Batch, metadata: FileMetadata) -> Job:
        """Submit one batch; returns the PENDING job created for it."""
        job_id = self.client.submit_batch(batch, metadata)
        logger.record_batch_submitted()
        logger.info(
            "Batch submitted",
            job_id=job_id,
            batch=batch.index + 1,
            total_batches=batch.total_batches,
            rows=len(batch.rows),
        )
        return Job(id=job_id, batch_index=batch.index)

    def submit_all(self, batches: Sequence[Batch], metadata: FileMetadata) -> SubmissionReport:
        """
        Submit every batch in index order, stopping at the first failure.

        Returns:
            SubmissionReport with the jobs accepted so far and, on failure,
            the SubmissionError naming the failing batch
        """
        self._progress = 0
        self._report(PARSE_PROGRESS)
        ordered = sorted(batches, key=lambda b: b.index)
        report = SubmissionReport(total_batches=len(ordered))

        for count, batch in enumerate(ordered, start=1):
            try:
                report.jobs.append(self.submit(batch, metadata))
            except SubmissionError as e:
                logger.record_submission_failure(f"Submission_{e.status or 'RequestError'}")
                logger.error(
                    "Submission stopped",
                    batch=batch.index + 1,
                    total_batches=batch.total_batches,
                    submitted=len(report.jobs),
                    error=str(e),
                )
                report.error = e
                return report
            self._report(submission_progress(count, len(ordered)))

        self._report(100)
        return report
