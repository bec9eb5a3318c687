import argparse
from pathlib import Path
from typing import List

from . import __version__
from .batcher import split
from .client import ScoringClient
from .config import Settings, load_settings
from .errors import ConfigurationError, PollError, SubmissionError
from .logger import get_logger
from .poller import PollState
from .report import format_results, format_summary
from .session import RankingSession
from .submitter import PartialSubmissionPolicy
from .tabular import read_rows

DEFAULT_WAIT_SECONDS = 600.0


def _settings(args: argparse.Namespace) -> Settings:
    try:
        settings = load_settings().with_overrides(
            submit_url=getattr(args, "submit_url", None),
            results_url=getattr(args, "results_url", None),
            chunk_size=getattr(args, "chunk_size", None),
            poll_interval=getattr(args, "interval", None),
            max_workers=getattr(args, "workers", None),
        )
        return settings.validate()
    except ConfigurationError as e:
        raise SystemExit(str(e))


def _session(settings: Settings, args: argparse.Namespace) -> RankingSession:
    def on_progress(value: int) -> None:
        print(f"Submitting... {value}%")

    def on_update(state) -> None:
        done = len(state.jobs) - len(state.pending_jobs())
        print(f"[poll] {done}/{len(state.jobs)} jobs finished, {len(state.results)} results")

    return RankingSession(
        ScoringClient.from_settings(settings),
        settings=settings,
        max_failures=getattr(args, "max_failures", None),
        on_progress=on_progress,
        on_update=on_update,
    )


def _parse_job_ids(values: List[str]) -> List[str]:
    ids = []
    for value in values:
        ids.extend(v.strip() for v in value.split(",") if v.strip())
    return ids


def _poll_and_write(session: RankingSession, args: argparse.Namespace) -> None:
    try:
        status = session.check_results()
    except PollError as e:
        raise SystemExit(str(e))

    if status is PollState.POLLING:
        print(f"Results not ready yet; polling every {session.settings.poll_interval:g}s...")
        status = session.wait(timeout=args.wait)
        if status is PollState.POLLING:
            session.stop_polling()
            print(f"Gave up waiting after {args.wait:g}s.")

    state = session.state
    if not state.results:
        print("No results available yet.")
        for job in state.pending_jobs():
            print(f"  pending: {job.id}")
        return

    print()
    for line in format_summary(state.summary):
        print(line)
    print()
    for line in format_results(state.results):
        print(line)

    output = session.write_results(args.output)
    print(f"\nRanked results written to {output}")
    unfinished = len(state.pending_jobs())
    if unfinished:
        print(f"Note: {unfinished} job(s) were still pending; rerun `check` for the rest.")


def cmd_split(args: argparse.Namespace) -> None:
    try:
        chunk_size = args.chunk_size if args.chunk_size is not None else load_settings().chunk_size
        rows = read_rows(Path(args.input))
        batches = split(rows, chunk_size)
    except ConfigurationError as e:
        raise SystemExit(str(e))
    print(f"{len(rows)} rows -> {len(batches)} batches")
    for batch in batches:
        print(f"  batch {batch.index + 1}/{batch.total_batches}: {len(batch)} rows")


def cmd_submit(args: argparse.Namespace) -> RankingSession:
    settings = _settings(args)
    session = _session(settings, args)
    policy = PartialSubmissionPolicy.RESUME if args.resume_partial else PartialSubmissionPolicy.ABANDON
    try:
        session.select_file(args.input)
        report = session.submit(policy=policy)
    except ConfigurationError as e:
        raise SystemExit(str(e))
    except SubmissionError as e:
        print(f"[error] {e}")
        if session.state.jobs:
            print("Jobs accepted before the failure (resume with `check`):")
            for job in session.state.jobs:
                print(f"  {job.id}")
        raise SystemExit(1)

    print(f"Submitted {len(report.jobs)} batch(es) from {session.state.filename}:")
    for job in report.jobs:
        print(f"  batch {job.batch_index + 1}: {job.id}")
    return session


def cmd_check(args: argparse.Namespace) -> None:
    job_ids = _parse_job_ids(args.job_id)
    if not job_ids:
        raise SystemExit("No job IDs given. Use --job-id ID[,ID...]")
    settings = _settings(args)
    session = _session(settings, args)
    if args.input:
        try:
            session.select_file(args.input)
        except ConfigurationError as e:
            raise SystemExit(str(e))
    session.track_jobs(job_ids)
    _poll_and_write(session, args)


def cmd_rank(args: argparse.Namespace) -> None:
    session = cmd_submit(args)
    _poll_and_write(session, args)


def _add_endpoint_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--submit-url", help="Submission webhook URL (or set REPLYRANKER_SUBMIT_URL)")
    p.add_argument("--results-url", help="Results endpoint base URL (or set REPLYRANKER_RESULTS_URL)")


def _add_poll_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--interval", type=float, help="Seconds between polling rounds (default 3)")
    p.add_argument("--workers", type=int, help="Concurrent result queries per round (default 8)")
    p.add_argument("--max-failures", type=int, help="Give up on a job after this many failed queries")
    p.add_argument("--wait", type=float, default=DEFAULT_WAIT_SECONDS, help="Max seconds to keep polling (default 600)")
    p.add_argument("--output", help="Where to write the ranked CSV (default: ranked_<input name>)")


def main():
    parser = argparse.ArgumentParser(prog="replyranker", description="Batch reply scoring with result reconciliation")
    parser.add_argument("--version", action="store_true", help="Show version")

    subparsers = parser.add_subparsers(dest="command")

    spl = subparsers.add_parser("split", help="Show how a CSV would be batched (no network)")
    spl.add_argument("--input", required=True, help="Path to input CSV")
    spl.add_argument("--chunk-size", type=int, help="Rows per batch (default 50)")
    spl.set_defaults(func=cmd_split)

    sub = subparsers.add_parser("submit", help="Submit a CSV in batches and print the job IDs")
    sub.add_argument("--input", required=True, help="Path to input CSV")
    sub.add_argument("--chunk-size", type=int, help="Rows per batch (default 50)")
    sub.add_argument("--resume-partial", action="store_true", help="Keep jobs accepted before a failed batch")
    _add_endpoint_args(sub)
    sub.set_defaults(func=cmd_submit)

    chk = subparsers.add_parser("check", help="Poll results for job IDs and write the ranked CSV")
    chk.add_argument("--job-id", action="append", default=[], help="Job ID (repeatable or comma-separated)")
    chk.add_argument("--input", help="Original CSV (used to name the output file)")
    _add_endpoint_args(chk)
    _add_poll_args(chk)
    chk.set_defaults(func=cmd_check)

    rnk = subparsers.add_parser("rank", help="Submit a CSV, wait for all results, write the ranked CSV")
    rnk.add_argument("--input", required=True, help="Path to input CSV")
    rnk.add_argument("--chunk-size", type=int, help="Rows per batch (default 50)")
    _add_endpoint_args(rnk)
    _add_poll_args(rnk)
    rnk.set_defaults(func=cmd_rank, resume_partial=False)

    args = parser.parse_args()

    if args.version:
        print(__version__)
        return

    if hasattr(args, "func"):
        try:
            log_level = load_settings().log_level
        except ConfigurationError as e:
            raise SystemExit(str(e))
        get_logger().set_level(log_level)
        args.func(args)
        get_logger().log_metrics_summary()
        return

    parser.print_help()


if __name__ == "__main__":
    main()
