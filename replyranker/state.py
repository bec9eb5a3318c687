"""
Session state for one upload-to-download cycle.

A new file or a new submission gets a fresh SessionState instance; fields
are never cleared one by one.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from .batcher import Batch, FileMetadata, Row
from .models import Job, JobStatus, ResultRecord, Summary
from .submitter import SubmissionReport


@dataclass
class SessionState:
    filename: Optional[str] = None
    rows: List[Row] = field(default_factory=list)
    batches: List[Batch] = field(default_factory=list)
    jobs: List[Job] = field(default_factory=list)
    results: List[ResultRecord] = field(default_factory=list)
    summary: Summary = field(default_factory=Summary)
    progress: int = 0
    error: Optional[str] = None
    submission: Optional[SubmissionReport] = None

    @property
    def metadata(self) -> FileMetadata:
        return FileMetadata(filename=self.filename or "", total_rows=len(self.rows))

    def pending_jobs(self) -> List[Job]:
        return [job for job in self.jobs if job.is_pending]

    def jobs_with_status(self, status: JobStatus) -> List[Job]:
        return [job for job in self.jobs if job.status is status]

    def get_job(self, job_id: str) -> Optional[Job]:
        for job in self.jobs:
            if job.id == job_id:
                return job
        return None

    @property
    def is_complete(self) -> bool:
        return bool(self.jobs) and not self.pending_jobs()
