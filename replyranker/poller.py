"""
Poll coordinator for in-flight scoring jobs.

Each round fans out one results query per PENDING job on a thread pool and
fans in once every query has returned. Only then, and only if the round's
cancellation token is still clear, are the outcomes folded into the
session state. Rounds never overlap.

States:
- IDLE: nothing started yet
- POLLING: a manual check or the periodic loop is active
- ALL_DONE: no job is PENDING any more
- STOPPED: cancelled by the caller
- FAILED: a manual check hit a real error and polling was halted
"""

import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from enum import Enum
from typing import Callable, Dict, List, Optional

from .config import DEFAULT_MAX_WORKERS, DEFAULT_POLL_INTERVAL
from .errors import ConfigurationError, PollError
from .logger import get_logger
from .merger import merge
from .models import Completed, Failed, Job, PollOutcome
from .state import SessionState

logger = get_logger()


class PollState(str, Enum):
    IDLE = "idle"
    POLLING = "polling"
    ALL_DONE = "all_done"
    STOPPED = "stopped"
    FAILED = "failed"


TERMINAL_STATES = (PollState.ALL_DONE, PollState.STOPPED, PollState.FAILED)


class PollCoordinator:
    def __init__(
        self,
        client,
        state: SessionState,
        interval: float = DEFAULT_POLL_INTERVAL,
        max_workers: int = DEFAULT_MAX_WORKERS,
        max_failures: Optional[int] = None,
        on_update: Optional[Callable[[SessionState], None]] = None,
    ):
        """
        Args:
            client: Object with fetch_results(job_id) -> PollOutcome
            state: Session state to update; shared with the caller
            interval: Seconds between the end of one round and the next
            max_workers: Upper bound on concurrent queries per round
            max_failures: Failed queries after which a job is given up
                (None = retry forever)
            on_update: Called with the state after each applied round
        """
        if interval <= 0:
            raise ConfigurationError(f"Poll interval must be positive, got {interval}")
        if max_workers < 1:
            raise ConfigurationError(f"max_workers must be at least 1, got {max_workers}")

        self.client = client
        self.state = state
        self.interval = interval
        self.max_workers = max_workers
        self.max_failures = max_failures
        self.on_update = on_update

        self.status = PollState.IDLE
        self.rounds = 0

        self._round_lock = threading.Lock()  # one round at a time
        self._state_lock = threading.Lock()  # guards apply vs. stop
        self._control_lock = threading.Lock()
        self._token: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None

    # Control

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _arm(self) -> threading.Event:
        """Return the live cancellation token, creating a new one if needed."""
        if self._token is None or self._token.is_set():
            self._token = threading.Event()
        return self._token

    def start(self) -> None:
        """Arm the periodic loop. No-op if it is already running."""
        self._start(resume=False)

    def _start(self, resume: bool) -> None:
        # resume: continue after a manual round, unless stop() got in first
        with self._control_lock:
            if self.is_running:
                return
            with self._state_lock:
                if resume and self.status is not PollState.POLLING:
                    return
                if not self.state.pending_jobs():
                    self.status = PollState.ALL_DONE
                    return
                token = self._arm()
                self.status = PollState.POLLING
            self._thread = threading.Thread(
                target=self._loop,
                args=(token,),
                name="replyranker-poll",
                daemon=True,
            )
            self._thread.start()
            logger.info("Auto-polling started", interval=self.interval, pending=len(self.state.pending_jobs()))

    def stop(self) -> None:
        """Cancel polling. Responses still in flight are discarded. Idempotent."""
        with self._state_lock:
            if self._token is not None:
                self._token.set()
            if self.status in (PollState.IDLE, PollState.POLLING):
                self.status = PollState.STOPPED
                logger.info("Polling stopped", rounds=self.rounds)

    def wait(self, timeout: Optional[float] = None) -> PollState:
        """Block until the loop thread exits (or timeout) and return the state."""
        thread = self._thread
        if thread is not None:
            thread.join(timeout)
        return self.status

    def check_results(self) -> PollState:
        """
        Run one round now.

        If work remains afterwards the periodic loop is started, so a single
        manual check is enough. A real query failure during a manual check
        halts polling; the failed jobs stay PENDING so a later check retries
        them.

        Raises:
            PollError: If any job's query failed with a non-404 error
        """
        with self._state_lock:
            token = self._arm()
            self.status = PollState.POLLING

        outcomes = self.run_round(token)
        if outcomes is None:
            return self.status

        failures = {job_id: o for job_id, o in outcomes.items() if isinstance(o, Failed)}
        if failures:
            with self._state_lock:
                token.set()
                if self.status is not PollState.STOPPED:
                    self.status = PollState.FAILED
            job_id, failure = next(iter(failures.items()))
            logger.error("Manual results check failed; polling halted", job_id=job_id, error=failure.error)
            raise PollError(f"Error fetching results for job {job_id}: {failure.error}", job_id=job_id)

        self._start(resume=True)
        return self.status

    # Rounds

    def _loop(self, token: threading.Event) -> None:
        while not token.wait(self.interval):
            outcomes = self.run_round(token)
            if outcomes is None or self.status is not PollState.POLLING:
                break

    def run_round(self, token: Optional[threading.Event] = None) -> Optional[Dict[str, PollOutcome]]:
        """
        Query every PENDING job concurrently and apply the outcomes.

        Returns:
            Mapping of job id to outcome, or None if the round was
            cancelled before its outcomes could be applied
        """
        with self._round_lock:
            if token is not None and token.is_set():
                return None
            pending = self.state.pending_jobs()
            if not pending:
                with self._state_lock:
                    if token is None or not token.is_set():
                        self.status = PollState.ALL_DONE
                return {}

            outcomes = self._fan_out(pending)

            with self._state_lock:
                if token is not None and token.is_set():
                    logger.debug("Discarding results of cancelled round", jobs=len(outcomes))
                    return None
                self._apply(outcomes)

        if self.on_update:
            self.on_update(self.state)
        return outcomes

    def _fan_out(self, jobs: List[Job]) -> Dict[str, PollOutcome]:
        outcomes: Dict[str, PollOutcome] = {}
        workers = min(self.max_workers, len(jobs))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="replyranker-query") as pool:
            futures = {pool.submit(self._query, job.id): job.id for job in jobs}
            for future in as_completed(futures):
                outcomes[futures[future]] = future.result()
        return outcomes

    def _query(self, job_id: str) -> PollOutcome:
        try:
            return self.client.fetch_results(job_id)
        except Exception as e:
            # A misbehaving client must not take down the whole round
            return Failed(f"{type(e).__name__}: {e}")

    def _apply(self, outcomes: Dict[str, PollOutcome]) -> None:
        """Fold one round's outcomes into the state. Caller holds _state_lock."""
        new_records = []
        for job in self.state.jobs:
            outcome = outcomes.get(job.id)
            if outcome is None or not job.is_pending:
                continue
            job.attempts += 1

            if isinstance(outcome, Completed):
                job.mark_done()
                new_records.extend(outcome.records)
                logger.record_job_completed()
                logger.info("Job completed", job_id=job.id, batch=job.batch_index + 1, records=len(outcome.records))
            elif isinstance(outcome, Failed):
                job.failures += 1
                job.last_error = outcome.error
                logger.record_poll_failure(f"HTTPError_{outcome.status}" if outcome.status else "RequestException")
                logger.warning(
                    "Results query failed",
                    job_id=job.id,
                    error=outcome.error,
                    failures=job.failures,
                )
                if self.max_failures is not None and job.failures >= self.max_failures:
                    job.mark_failed(outcome.error)
            else:
                logger.debug("Job still pending", job_id=job.id, reason=outcome.reason)

        if new_records:
            self.state.results, self.state.summary = merge(self.state.results, new_records)

        self.rounds += 1
        logger.record_poll_round()

        remaining = len(self.state.pending_jobs())
        if remaining == 0 and self.status not in TERMINAL_STATES:
            self.status = PollState.ALL_DONE
            logger.info("All jobs finished", rounds=self.rounds, results=len(self.state.results))
