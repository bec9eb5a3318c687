"""Split input rows into fixed-size, order-preserving batches."""

from dataclasses import dataclass
from typing import Dict, List, Sequence

from .config import DEFAULT_CHUNK_SIZE, validate_chunk_size

Row = Dict[str, str]


@dataclass(frozen=True)
class Batch:
    index: int
    total_batches: int
    rows: List[Row]

    def __len__(self) -> int:
        return len(self.rows)


@dataclass(frozen=True)
class FileMetadata:
    filename: str
    total_rows: int


def split(rows: Sequence[Row], chunk_size: int = DEFAULT_CHUNK_SIZE) -> List[Batch]:
    """
    Split rows into batches of at most chunk_size rows.

    Concatenating the batches' rows in index order gives back the input.
    Zero rows yield zero batches.

    Raises:
        ConfigurationError: If chunk_size is not a positive integer
    """
    validate_chunk_size(chunk_size)
    rows = list(rows)
    chunks = [rows[i:i + chunk_size] for i in range(0, len(rows), chunk_size)]
    return [Batch(index=i, total_batches=len(chunks), rows=chunk) for i, chunk in enumerate(chunks)]
