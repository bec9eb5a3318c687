"""
RankingSession: one upload-to-download cycle.

Ties the batcher, submitter, poll coordinator and merger to a single
SessionState. Selecting a new file or starting a new submission cancels any
polling and swaps in a fresh state.
"""

from pathlib import Path
from typing import Callable, List, Optional, Sequence, Union

from .batcher import Row, split
from .config import Settings
from .errors import ConfigurationError, PollError
from .logger import get_logger
from .models import Job
from .poller import PollCoordinator, PollState
from .schema import validate_rows
from .state import SessionState
from .submitter import JobSubmitter, PartialSubmissionPolicy, SubmissionReport
from .tabular import download_name, encode_results, read_rows, write_text

logger = get_logger()


class RankingSession:
    def __init__(
        self,
        client,
        settings: Optional[Settings] = None,
        max_failures: Optional[int] = None,
        on_progress: Optional[Callable[[int], None]] = None,
        on_update: Optional[Callable[[SessionState], None]] = None,
    ):
        self.client = client
        self.settings = settings or Settings()
        self.settings.validate(require_endpoints=False)
        self.max_failures = max_failures
        self.on_progress = on_progress
        self.on_update = on_update
        self.state = SessionState()
        self._coordinator: Optional[PollCoordinator] = None

    # Lifecycle

    def _reset(self, filename: Optional[str] = None, rows: Optional[List[Row]] = None) -> None:
        self.stop_polling()
        self._coordinator = None
        self.state = SessionState(filename=filename, rows=rows or [])

    def select_file(
        self,
        source: Union[str, Path, Sequence[Row]],
        filename: Optional[str] = None,
    ) -> SessionState:
        """
        Start over with a new input. Accepts a CSV path or already-decoded rows.

        Raises:
            ConfigurationError: If the rows are malformed
        """
        if isinstance(source, (str, Path)):
            path = Path(source)
            rows = read_rows(path)
            filename = filename or path.name
        else:
            rows = [dict(row) for row in source]
            problems = validate_rows(rows)
            if problems:
                line, errors = problems[0]
                raise ConfigurationError(f"Row {line} is invalid: {'; '.join(errors)}")

        self._reset(filename=filename or "results.csv", rows=rows)
        logger.info("File selected", filename=self.state.filename, rows=len(rows))
        return self.state

    def _set_progress(self, value: int) -> None:
        self.state.progress = value
        if self.on_progress:
            self.on_progress(value)

    # Submission

    def submit(self, policy: PartialSubmissionPolicy = PartialSubmissionPolicy.ABANDON) -> SubmissionReport:
        """
        Split the selected rows and submit every batch in order.

        Raises:
            ConfigurationError: If no file has been selected
            SubmissionError: If a batch was rejected. Under RESUME the jobs
                accepted before the failure stay in the state for polling.
        """
        if self.state.filename is None:
            raise ConfigurationError("Please select a file first")

        # a new submission starts from a clean state for the same input
        self._reset(filename=self.state.filename, rows=self.state.rows)
        state = self.state
        state.batches = split(state.rows, self.settings.chunk_size)
        if not state.batches:
            raise ConfigurationError(f"{state.filename} contains no data rows")

        submitter = JobSubmitter(self.client, on_progress=self._set_progress)
        report = submitter.submit_all(state.batches, state.metadata)
        report.policy = policy
        state.submission = report

        if report.ok:
            state.jobs = list(report.jobs)
            logger.info("Submission complete", jobs=len(report.jobs), filename=state.filename)
            return report

        state.error = str(report.error)
        if policy is PartialSubmissionPolicy.RESUME:
            state.jobs = list(report.jobs)
        logger.warning(
            "Partial submission",
            policy=policy.value,
            kept_jobs=len(state.jobs),
            failed_batch=(report.failed_batch_index or 0) + 1,
        )
        report.raise_for_error()
        return report

    def track_jobs(self, job_ids: Sequence[str]) -> SessionState:
        """Poll for jobs submitted elsewhere (e.g. an earlier run)."""
        self._reset(filename=self.state.filename, rows=self.state.rows)
        self.state.jobs = [Job(id=job_id, batch_index=i) for i, job_id in enumerate(job_ids)]
        return self.state

    # Polling

    @property
    def coordinator(self) -> PollCoordinator:
        if self._coordinator is None or self._coordinator.state is not self.state:
            self._coordinator = PollCoordinator(
                self.client,
                self.state,
                interval=self.settings.poll_interval,
                max_workers=self.settings.max_workers,
                max_failures=self.max_failures,
                on_update=self.on_update,
            )
        return self._coordinator

    @property
    def poll_state(self) -> PollState:
        if self._coordinator is None:
            return PollState.IDLE
        return self._coordinator.status

    def check_results(self) -> PollState:
        """
        Manual results check; starts auto-polling if work remains.

        Raises:
            ConfigurationError: If nothing has been submitted
            PollError: On a real failure during this check
        """
        if not self.state.jobs:
            raise ConfigurationError("No job ID available")
        self.state.error = None
        try:
            return self.coordinator.check_results()
        except PollError as e:
            self.state.error = str(e)
            raise

    def start_polling(self) -> None:
        if not self.state.jobs:
            raise ConfigurationError("No job ID available")
        self.coordinator.start()

    def stop_polling(self) -> None:
        if self._coordinator is not None:
            self._coordinator.stop()

    def wait(self, timeout: Optional[float] = None) -> PollState:
        if self._coordinator is None:
            return PollState.IDLE
        return self._coordinator.wait(timeout)

    # Export

    def export_csv(self) -> str:
        return encode_results(self.state.results)

    def download_name(self) -> str:
        return download_name(self.state.filename)

    def write_results(self, path: Optional[Union[str, Path]] = None) -> Optional[Path]:
        """Write the ranked CSV. Returns None when there are no results yet."""
        if not self.state.results:
            return None
        target = Path(path) if path is not None else Path(self.download_name())
        write_text(target, self.export_csv())
        logger.info("Results written", path=str(target), rows=len(self.state.results))
        return target
