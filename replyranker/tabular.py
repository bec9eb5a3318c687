"""CSV decoding of input rows and CSV encoding of ranked results."""

import csv
from pathlib import Path
from typing import Any, List, Optional, Sequence

from .batcher import Row
from .errors import ConfigurationError
from .models import ResultRecord

EXPORT_COLUMNS = [
    "id",
    "tweetId",
    "replyText",
    "originalTweetText",
    "score",
    "ranking",
    "jobId",
    "url",
]


def read_rows(path: Path) -> List[Row]:
    """
    Read a CSV file into a list of rows keyed by the header line.

    Headers and values are trimmed; short lines are padded with "" and
    values beyond the last header are dropped.

    Raises:
        ConfigurationError: If the file is missing or has no header line
    """
    if not path.exists():
        raise ConfigurationError(f"Input file not found: {path}")
    with path.open("r", encoding="utf-8-sig", newline="") as f:
        reader = csv.DictReader(f, restval="")
        if not reader.fieldnames:
            raise ConfigurationError(f"Input file has no header line: {path}")
        headers = [h.strip() for h in reader.fieldnames]
        rows = []
        for raw in reader:
            values = [raw.get(name) for name in reader.fieldnames]
            if all(v is None or not v.strip() for v in values):
                continue
            rows.append({h: (v or "").strip() for h, v in zip(headers, values) if h})
    return rows


def escape_field(value: Any) -> str:
    """Quote-wrap a value, doubling internal quotes. None becomes ''."""
    if value is None:
        return ""
    text = str(value)
    return '"' + text.replace('"', '""') + '"'


def project(record: ResultRecord, position: int) -> List[Any]:
    """Export column values for one record; position is 1-based."""
    return [
        record.identity,
        record.tweet_id or f"tweet_{position}",
        record.reply_text,
        record.original_tweet_text,
        record.score,
        record.ranking,
        record.job_id,
        record.url,
    ]


def encode_results(records: Sequence[ResultRecord]) -> str:
    if not records:
        return ""
    lines = [",".join(EXPORT_COLUMNS)]
    for position, record in enumerate(records, start=1):
        lines.append(",".join(escape_field(v) for v in project(record, position)))
    return "\n".join(lines)


def download_name(filename: Optional[str]) -> str:
    return f"ranked_{filename or 'results.csv'}"


def write_text(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="") as f:
        f.write(content)
