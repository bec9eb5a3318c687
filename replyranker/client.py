"""HTTP transport for the scoring worker's submission and results endpoints."""

from typing import Optional
from urllib.parse import quote

import requests

from .batcher import Batch, FileMetadata
from .errors import SubmissionError
from .logger import get_logger
from .models import Failed, Pending, PollOutcome
from .retry import RetryError, exponential_backoff
from .schema import decode_job_id, decode_results_body

logger = get_logger()

TRANSIENT_EXCEPTIONS = (requests.exceptions.Timeout, requests.exceptions.ConnectionError)


class ScoringClient:
    """
    Talks to the remote scorer.

    `submit_batch` raises SubmissionError on anything but a 2xx carrying a
    job id. `fetch_results` never raises; every answer is folded into a
    PollOutcome.
    """

    def __init__(
        self,
        submit_url: str,
        results_url: str,
        timeout: float = 15.0,
        retries: int = 2,
        retry_delay: float = 0.5,
        session: Optional[requests.Session] = None,
    ):
        self.submit_url = submit_url
        self.results_url = results_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.setdefault("Content-Type", "application/json")

        def _on_retry(attempt, exc, delay):
            logger.warning("Transient transport error, retrying", attempt=attempt, delay=delay, error=str(exc))

        self._send = exponential_backoff(
            max_retries=retries,
            base_delay=retry_delay,
            exceptions=TRANSIENT_EXCEPTIONS,
            on_retry=_on_retry,
        )(self._request)

    @classmethod
    def from_settings(cls, settings) -> "ScoringClient":
        return cls(
            submit_url=settings.submit_url,
            results_url=settings.results_url,
            timeout=settings.request_timeout,
            retries=settings.transport_retries,
        )

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        logger.record_api_call()
        return self.session.request(method, url, timeout=self.timeout, **kwargs)

    def job_url(self, job_id: str) -> str:
        return f"{self.results_url}/{quote(job_id, safe='')}"

    def submit_batch(self, batch: Batch, metadata: FileMetadata) -> str:
        """
        Submit one batch and return the job identifier.

        Raises:
            SubmissionError: On non-2xx, network failure, or a body without a job id
        """
        if batch is None:
            raise SubmissionError("batch is required")

        payload = {
            "items": batch.rows,
            "filename": metadata.filename,
            "totalRows": metadata.total_rows,
            "batchIndex": batch.index,
            "totalBatches": batch.total_batches,
        }

        def fail(message: str, status: Optional[int] = None) -> SubmissionError:
            return SubmissionError(message, batch_index=batch.index, total_batches=batch.total_batches, status=status)

        try:
            resp = self._send("POST", self.submit_url, json=payload)
        except RetryError as e:
            raise fail(f"request error: {e.__cause__ or e}") from e
        except requests.exceptions.RequestException as e:
            raise fail(f"request error: {e}") from e

        if not resp.ok:
            raise fail(f"server error ({resp.status_code})", status=resp.status_code)

        try:
            body = resp.json()
        except ValueError:
            raise fail("response is not JSON", status=resp.status_code)

        job_id = decode_job_id(body)
        if job_id is None:
            raise fail("no job ID received from server", status=resp.status_code)
        return job_id

    def fetch_results(self, job_id: str) -> PollOutcome:
        """Query one job. 404 and unreadable bodies mean 'not ready yet'."""
        url = self.job_url(job_id)
        try:
            resp = self._send("GET", url)
        except RetryError as e:
            cause = e.__cause__ or e
            return Failed(f"{type(cause).__name__}: {cause}")
        except requests.exceptions.RequestException as e:
            return Failed(f"{type(e).__name__}: {e}")

        if resp.status_code == 404:
            return Pending("not found")
        if not resp.ok:
            return Failed(f"server error ({resp.status_code})", status=resp.status_code)
        return decode_results_body(resp.text, job_id)

    def close(self) -> None:
        self.session.close()
