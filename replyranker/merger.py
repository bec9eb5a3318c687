"""
Result reconciliation: dedup, sort and summarize.

Repeated polls of a completed job return the same records again, and jobs
finish in any order. The merged set is therefore rebuilt from scratch on
every merge, and the summary is always recomputed from the full set.
"""

from typing import List, Sequence, Tuple

from .models import ResultRecord, Summary


def dedupe(records: Sequence[ResultRecord]) -> List[ResultRecord]:
    """Drop later records whose identity was already seen (first wins)."""
    seen = set()
    result = []
    for record in records:
        key = record.dedup_key
        if key not in seen:
            seen.add(key)
            result.append(record)
    return result


def sort_by_score(records: Sequence[ResultRecord]) -> List[ResultRecord]:
    # sorted() is stable with reverse=True, so ties keep arrival order
    return sorted(records, key=lambda r: r.ranking, reverse=True)


def summarize(records: Sequence[ResultRecord]) -> Summary:
    if not records:
        return Summary()
    scores = [r.ranking for r in records]
    return Summary(
        total_processed=len(scores),
        average_score=sum(scores) / len(scores),
        highest_score=max(scores),
        lowest_score=min(scores),
    )


def merge(
    existing: Sequence[ResultRecord],
    new_records: Sequence[ResultRecord],
) -> Tuple[List[ResultRecord], Summary]:
    """
    Merge newly received records into the current result set.

    Returns:
        Tuple of (result_set, summary). The result set is unique by
        identity and sorted by descending score.
    """
    if not new_records:
        existing = list(existing)
        return existing, summarize(existing)

    merged = sort_by_score(dedupe(list(existing) + list(new_records)))
    return merged, summarize(merged)
