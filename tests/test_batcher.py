"""
Tests for batch partitioning.
"""

import math

import pytest

from replyranker.batcher import split
from replyranker.errors import ConfigurationError


class TestSplit:
    """Test fixed-size, order-preserving batching."""

    def test_120_rows_default_chunk(self, rows):
        """120 rows at chunk size 50 give batches of 50, 50, 20."""
        batches = split(rows)

        assert [len(b) for b in batches] == [50, 50, 20]
        assert [b.index for b in batches] == [0, 1, 2]
        assert all(b.total_batches == 3 for b in batches)

    @pytest.mark.parametrize("n", [0, 1, 7, 49, 50, 51, 100, 101])
    @pytest.mark.parametrize("chunk", [1, 3, 50])
    def test_batch_count_and_order(self, n, chunk):
        """ceil(n/c) batches; all full except maybe the last; order kept."""
        data = [{"n": str(i)} for i in range(n)]
        batches = split(data, chunk)

        assert len(batches) == math.ceil(n / chunk)
        assert all(len(b) == chunk for b in batches[:-1])
        if batches:
            assert 1 <= len(batches[-1]) <= chunk
        assert [row for b in batches for row in b.rows] == data

    def test_empty_input_yields_no_batches(self):
        assert split([], 10) == []

    @pytest.mark.parametrize("bad", [0, -1, 2.5, "50", None, True])
    def test_invalid_chunk_size_rejected(self, bad):
        """Chunk size must be a positive integer."""
        with pytest.raises(ConfigurationError):
            split([{"a": "b"}], bad)

    def test_invalid_chunk_size_is_value_error(self):
        """ConfigurationError is also a ValueError for plain callers."""
        with pytest.raises(ValueError):
            split([], 0)

    def test_input_not_mutated(self, rows):
        original = list(rows)
        split(rows, 7)
        assert rows == original
