"""
Pytest configuration and shared fixtures.
"""

import pytest

from replyranker.logger import get_logger

# Create the global logger before any replyranker module grabs it, so test
# runs don't write log files into the working directory.
get_logger(enable_console=False, enable_file=False)


@pytest.fixture
def rows():
    """120 input rows, i.e. three batches at the default chunk size."""
    return [{"tweetId": str(i), "replyText": f"reply {i}"} for i in range(120)]


@pytest.fixture
def done():
    """Factory for a Completed outcome with one record per score."""
    from fakes import make_record
    from replyranker.models import Completed

    def _done(job_id: str, *scores):
        return Completed([
            make_record(identity=f"{job_id}-{i}", score=s, job_id=job_id)
            for i, s in enumerate(scores)
        ])
    return _done


@pytest.fixture
def fake_session():
    from fakes import FakeSession
    return FakeSession()
