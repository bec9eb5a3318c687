"""
Tests for sequential batch submission and progress reporting.
"""

import pytest

from fakes import ScriptedClient
from replyranker.batcher import FileMetadata, split
from replyranker.errors import SubmissionError
from replyranker.models import JobStatus
from replyranker.submitter import JobSubmitter, submission_progress


@pytest.fixture
def metadata():
    return FileMetadata(filename="replies.csv", total_rows=120)


class TestSubmitAll:
    def test_submits_in_index_order(self, rows, metadata):
        client = ScriptedClient()
        batches = split(rows, 50)

        report = JobSubmitter(client).submit_all(list(reversed(batches)), metadata)

        assert report.ok
        assert [b.index for b in client.submitted] == [0, 1, 2]
        assert report.job_ids == ["job-0", "job-1", "job-2"]
        assert [j.batch_index for j in report.jobs] == [0, 1, 2]
        assert all(j.status is JobStatus.PENDING for j in report.jobs)

    def test_stops_at_first_failure(self, rows, metadata):
        client = ScriptedClient()
        client.fail_on_batch = 1

        report = JobSubmitter(client).submit_all(split(rows, 50), metadata)

        assert not report.ok
        assert report.failed_batch_index == 1
        assert report.job_ids == ["job-0"]  # no rollback
        assert [b.index for b in client.submitted] == [0]  # batch 3 never sent

    def test_raise_for_error(self, rows, metadata):
        client = ScriptedClient()
        client.fail_on_batch = 0
        report = JobSubmitter(client).submit_all(split(rows, 50), metadata)

        with pytest.raises(SubmissionError, match="Batch 1/3"):
            report.raise_for_error()

    def test_single_submit_returns_pending_job(self, rows, metadata):
        job = JobSubmitter(ScriptedClient()).submit(split(rows, 50)[2], metadata)
        assert job.id == "job-2"
        assert job.batch_index == 2
        assert job.is_pending


class TestProgress:
    def test_progress_sequence(self, rows, metadata):
        seen = []
        JobSubmitter(ScriptedClient(), on_progress=seen.append).submit_all(split(rows, 50), metadata)

        assert seen == [25, 50, 75, 99, 100]

    def test_progress_monotonic_and_below_100_until_done(self, metadata):
        seen = []
        data = [{"n": str(i)} for i in range(7)]
        JobSubmitter(ScriptedClient(), on_progress=seen.append).submit_all(split(data, 1), metadata)

        assert seen == sorted(seen)
        assert seen[-1] == 100
        assert all(p < 100 for p in seen[:-1])

    def test_failed_submission_never_reaches_100(self, rows, metadata):
        seen = []
        client = ScriptedClient()
        client.fail_on_batch = 2
        submitter = JobSubmitter(client, on_progress=seen.append)
        submitter.submit_all(split(rows, 50), metadata)

        assert max(seen) < 100
        assert submitter.progress == max(seen)

    @pytest.mark.parametrize("submitted, total, expected", [
        (0, 4, 25),
        (1, 4, 43),
        (2, 4, 62),
        (4, 4, 99),
        (0, 0, 25),
    ])
    def test_submission_progress(self, submitted, total, expected):
        assert submission_progress(submitted, total) == expected
