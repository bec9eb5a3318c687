"""
Decoding of remote payloads into internal types.

Every function here is total: unexpected shapes fall back to "pending"
(results) or an explicit error message (submission) instead of raising, so
the poller never sees raw JSON.
"""

import json
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .logger import get_logger
from .models import Completed, Pending, PollOutcome, ResultRecord, Score

logger = get_logger()

# Historical field names, highest priority first
JOB_ID_FIELDS = ("jobId", "jobid", "job_id")
RECORD_ID_FIELDS = ("id", "_id")
URL_FIELDS = ("url", "tweetlink", "tweetLink")
CREATED_FIELDS = ("createdAt", "created_at")
UPDATED_FIELDS = ("updatedAt", "updated_at")

STATUS_PROCESSING = "processing"
STATUS_DONE = "done"


def _is_non_empty_str(v: Any) -> bool:
    return isinstance(v, str) and v.strip() != ""


def _first(data: Dict[str, Any], names: Sequence[str]) -> Any:
    for name in names:
        value = data.get(name)
        if value is not None and value != "":
            return value
    return None


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value)
    return text if text.strip() else None


def coerce_score(value: Any) -> Optional[Score]:
    """
    Coerce a score to a number.

    Numeric strings are parsed ("7" -> 7, "7.5" -> 7.5). Returns None when
    the value cannot be read as a finite number.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = value
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = int(text)
        except ValueError:
            try:
                number = float(text)
            except ValueError:
                return None
    else:
        return None

    if isinstance(number, float):
        if number != number or number in (float("inf"), float("-inf")):
            return None
        if number.is_integer():
            return int(number)
    return number


def decode_job_id(body: Any) -> Optional[str]:
    """Return the job identifier from a submission response body, if any."""
    if isinstance(body, list) and len(body) == 1:
        body = body[0]
    if not isinstance(body, dict):
        return None
    job_id = _first(body, JOB_ID_FIELDS)
    if job_id is None or isinstance(job_id, (dict, list, bool)):
        return None
    job_id = str(job_id).strip()
    return job_id or None


def parse_record(raw: Any, job_id: str) -> Optional[ResultRecord]:
    """
    Normalize one raw result record.

    Returns None for entries that are not objects. A score that cannot be
    coerced becomes 0 and the record is kept.
    """
    if not isinstance(raw, dict):
        return None

    tweet_id = _optional_str(raw.get("tweetId"))
    reply_text = "" if raw.get("replyText") is None else str(raw.get("replyText"))
    score = coerce_score(raw.get("score"))
    if score is None:
        logger.debug("Uncoercible score treated as 0", job_id=job_id, score=raw.get("score"))
        score = 0

    record_id = _first(raw, RECORD_ID_FIELDS)
    if isinstance(record_id, (int, str)) and not isinstance(record_id, bool):
        identity, has_own_id = record_id, True
    else:
        identity, has_own_id = f"{tweet_id or ''}|{reply_text}", False

    return ResultRecord(
        identity=identity,
        has_own_id=has_own_id,
        tweet_id=tweet_id,
        reply_text=reply_text,
        original_tweet_text="" if raw.get("originalTweetText") is None else str(raw.get("originalTweetText")),
        score=score,
        job_id=_optional_str(_first(raw, JOB_ID_FIELDS)) or job_id,
        url=_optional_str(_first(raw, URL_FIELDS)),
        created_at=_optional_str(_first(raw, CREATED_FIELDS)),
        updated_at=_optional_str(_first(raw, UPDATED_FIELDS)),
    )


def parse_records(raw_records: Sequence[Any], job_id: str) -> List[ResultRecord]:
    records = []
    skipped = 0
    for raw in raw_records:
        record = parse_record(raw, job_id)
        if record is None:
            skipped += 1
            continue
        records.append(record)
    if skipped:
        logger.warning("Skipped malformed result entries", job_id=job_id, skipped=skipped)
    return records


def unwrap_payload(data: Any) -> Optional[Dict[str, Any]]:
    """Accept a bare object or an array wrapping one; anything else is None."""
    if isinstance(data, list):
        if not data:
            return None
        data = data[0]
    if isinstance(data, dict):
        return data
    return None


def decode_results_body(text: Optional[str], job_id: str) -> PollOutcome:
    """
    Turn the body of a successful results response into a poll outcome.

    Shapes tried in order: empty body, JSON, array wrapper, bare object.
    Anything that is not "done with at least one record" is Pending.
    """
    if text is None or not text.strip():
        return Pending("empty body")
    try:
        data = json.loads(text)
    except ValueError:
        logger.debug("Unparsable results body, still pending", job_id=job_id, body=text[:200])
        return Pending("unparsable body")

    payload = unwrap_payload(data)
    if payload is None:
        logger.debug("Unexpected results shape, still pending", job_id=job_id)
        return Pending("unexpected shape")

    status = payload.get("status")
    if status == STATUS_PROCESSING:
        return Pending(STATUS_PROCESSING)
    if status != STATUS_DONE:
        return Pending(f"unknown status: {status!r}")

    raw_records = payload.get("results")
    if not isinstance(raw_records, list) or not raw_records:
        return Pending("done without results")

    records = parse_records(raw_records, job_id)
    if not records:
        return Pending("done without usable results")
    return Completed(records)


def validate_row(row: Any) -> List[str]:
    """
    Returns a list of validation error messages for one input row.
    Empty list means valid.
    """
    errors: List[str] = []
    if not isinstance(row, dict):
        return ["Row must be a mapping of column name to value"]
    for key, value in row.items():
        if not _is_non_empty_str(key):
            errors.append("Column names must be non-empty strings")
        if not isinstance(value, str):
            errors.append(f"Field '{key}' must be a string")
    return errors


def validate_rows(rows: Sequence[Any]) -> List[Tuple[int, List[str]]]:
    """Validate every row; returns (row_number, errors) for invalid rows (1-based)."""
    problems = []
    for i, row in enumerate(rows, start=1):
        errors = validate_row(row)
        if errors:
            problems.append((i, errors))
    return problems
