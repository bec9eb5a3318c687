"""
Tests for the command-line entry point.
"""

import sys

import pytest

from replyranker.app import main

ENV_NAMES = [
    "REPLYRANKER_SUBMIT_URL",
    "REPLYRANKER_RESULTS_URL",
    "REPLYRANKER_CHUNK_SIZE",
    "REPLYRANKER_POLL_INTERVAL",
    "REPLYRANKER_MAX_WORKERS",
    "REPLYRANKER_REQUEST_TIMEOUT",
    "REPLYRANKER_TRANSPORT_RETRIES",
    "REPLYRANKER_LOG_LEVEL",
]


@pytest.fixture
def csv_file(monkeypatch, tmp_path):
    for name in ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    path = tmp_path / "replies.csv"
    lines = ["tweetId,replyText"] + [f"{i},reply {i}" for i in range(120)]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


def run(monkeypatch, *argv):
    monkeypatch.setattr(sys, "argv", ["replyranker", *argv])
    main()


class TestSplitCommand:
    """Test the offline batching preview."""

    def test_default_chunk_size(self, monkeypatch, capsys, csv_file):
        run(monkeypatch, "split", "--input", str(csv_file))

        out = capsys.readouterr().out
        assert "120 rows -> 3 batches" in out
        assert "batch 3/3: 20 rows" in out

    def test_chunk_size_from_environment(self, monkeypatch, capsys, csv_file):
        monkeypatch.setenv("REPLYRANKER_CHUNK_SIZE", "40")

        run(monkeypatch, "split", "--input", str(csv_file))

        out = capsys.readouterr().out
        assert "120 rows -> 3 batches" in out
        assert "batch 3/3: 40 rows" in out

    def test_flag_overrides_environment(self, monkeypatch, capsys, csv_file):
        monkeypatch.setenv("REPLYRANKER_CHUNK_SIZE", "40")

        run(monkeypatch, "split", "--input", str(csv_file), "--chunk-size", "100")

        assert "120 rows -> 2 batches" in capsys.readouterr().out

    def test_invalid_chunk_size_flag(self, monkeypatch, csv_file):
        with pytest.raises(SystemExit, match="Chunk size"):
            run(monkeypatch, "split", "--input", str(csv_file), "--chunk-size", "0")


class TestBadEnvironment:
    """Malformed settings end the program with a message, not a traceback."""

    @pytest.mark.parametrize("command", ["split", "submit"])
    def test_non_numeric_setting(self, monkeypatch, csv_file, command):
        monkeypatch.setenv("REPLYRANKER_CHUNK_SIZE", "fifty")

        with pytest.raises(SystemExit, match="REPLYRANKER_CHUNK_SIZE"):
            run(monkeypatch, command, "--input", str(csv_file))

    def test_missing_endpoints(self, monkeypatch, csv_file):
        with pytest.raises(SystemExit, match="URL"):
            run(monkeypatch, "submit", "--input", str(csv_file))
