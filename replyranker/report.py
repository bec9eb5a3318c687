"""Human-readable rendering of scores and summaries."""

from typing import List, Optional

from .models import ResultRecord, Score, Summary

BANDS = [
    (8, "excellent"),
    (6, "good"),
    (4, "fair"),
    (1, "poor"),
]


def score_band(score: Optional[Score]) -> str:
    if score is None:
        return "unscored"
    for threshold, label in BANDS:
        if score >= threshold:
            return label
    return "unscored"


def _fmt(score: Optional[Score]) -> str:
    return "-" if score is None else f"{score}"


def format_summary(summary: Summary) -> List[str]:
    return [
        f"Total processed: {summary.total_processed}",
        f"Highest score:   {_fmt(summary.highest_score)}/10",
        f"Average score:   {summary.average_score:.1f}/10",
        f"Lowest score:    {_fmt(summary.lowest_score)}/10",
    ]


def format_results(records: List[ResultRecord], limit: int = 10) -> List[str]:
    """One line per record: position, tweet, score and band."""
    lines = []
    for i, record in enumerate(records[:limit], start=1):
        label = record.tweet_id or f"Item {i}"
        reply = record.reply_text if len(record.reply_text) <= 60 else record.reply_text[:57] + "..."
        lines.append(f"{i:>3}. [{_fmt(record.score)}/10 {score_band(record.score)}] {label}: {reply}")
    if len(records) > limit:
        lines.append(f"     ... {len(records) - limit} more")
    return lines
