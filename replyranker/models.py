"""
Core data types: jobs, result records, summaries and per-round outcomes.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple, Union

Score = Union[int, float]


class JobStatus(str, Enum):
    PENDING = "pending"
    DONE = "done"
    FAILED = "failed"


@dataclass
class Job:
    """
    One remote unit of work, created when a batch is accepted.

    Status only moves forward: PENDING -> DONE or PENDING -> FAILED.
    A failed query in a single round is counted in `failures` but leaves
    the job PENDING so the next round asks again.
    """

    id: str
    batch_index: int
    status: JobStatus = JobStatus.PENDING
    attempts: int = 0
    failures: int = 0
    last_error: Optional[str] = None

    @property
    def is_pending(self) -> bool:
        return self.status is JobStatus.PENDING

    def mark_done(self) -> None:
        self._transition(JobStatus.DONE)
        self.last_error = None

    def mark_failed(self, error: str) -> None:
        self._transition(JobStatus.FAILED)
        self.last_error = error

    def _transition(self, status: JobStatus) -> None:
        if self.status is not JobStatus.PENDING:
            raise ValueError(f"Job {self.id} is already {self.status.value}; cannot move to {status.value}")
        self.status = status


@dataclass(frozen=True)
class ResultRecord:
    identity: Union[str, int]
    reply_text: str
    original_tweet_text: str
    score: Score
    job_id: str
    tweet_id: Optional[str] = None
    url: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    has_own_id: bool = True

    @property
    def ranking(self) -> Score:
        return self.score

    @property
    def dedup_key(self) -> Tuple:
        if self.has_own_id:
            return ("id", str(self.identity))
        return ("composite", self.tweet_id or "", self.reply_text)


@dataclass(frozen=True)
class Summary:
    total_processed: int = 0
    average_score: float = 0.0
    highest_score: Optional[Score] = None
    lowest_score: Optional[Score] = None


# Per-job outcome of a single poll round


@dataclass(frozen=True)
class Pending:
    reason: str = "processing"


@dataclass(frozen=True)
class Completed:
    records: List[ResultRecord] = field(default_factory=list)


@dataclass(frozen=True)
class Failed:
    error: str
    status: Optional[int] = None


PollOutcome = Union[Pending, Completed, Failed]
