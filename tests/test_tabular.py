"""
Tests for CSV input decoding and ranked CSV export.
"""

import pytest

from fakes import make_record
from replyranker.errors import ConfigurationError
from replyranker.tabular import download_name, encode_results, escape_field, read_rows, write_text


class TestReadRows:
    def test_trims_headers_and_values(self, tmp_path):
        path = tmp_path / "in.csv"
        path.write_text(" tweetId , replyText \n 1 , hello \n", encoding="utf-8")

        assert read_rows(path) == [{"tweetId": "1", "replyText": "hello"}]

    def test_quoted_commas(self, tmp_path):
        path = tmp_path / "in.csv"
        path.write_text('tweetId,replyText\n1,"hello, world"\n', encoding="utf-8")

        assert read_rows(path)[0]["replyText"] == "hello, world"

    def test_blank_lines_skipped_and_short_rows_padded(self, tmp_path):
        path = tmp_path / "in.csv"
        path.write_text("a,b,c\n1,2,3\n\n , \n4\n", encoding="utf-8")

        assert read_rows(path) == [{"a": "1", "b": "2", "c": "3"}, {"a": "4", "b": "", "c": ""}]

    def test_extra_values_dropped(self, tmp_path):
        path = tmp_path / "in.csv"
        path.write_text("a\n1,2,3\n", encoding="utf-8")

        assert read_rows(path) == [{"a": "1"}]

    def test_byte_order_mark(self, tmp_path):
        path = tmp_path / "in.csv"
        path.write_bytes("\ufefftweetId\n7\n".encode("utf-8"))

        assert read_rows(path) == [{"tweetId": "7"}]

    def test_header_only(self, tmp_path):
        path = tmp_path / "in.csv"
        path.write_text("tweetId,replyText\n", encoding="utf-8")
        assert read_rows(path) == []

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            read_rows(tmp_path / "nope.csv")

    def test_empty_file(self, tmp_path):
        path = tmp_path / "in.csv"
        path.write_text("", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="no header"):
            read_rows(path)


class TestExport:
    def test_escape_field(self):
        assert escape_field('say "hi"') == '"say ""hi"""'
        assert escape_field(7) == '"7"'
        assert escape_field("") == '""'
        assert escape_field(None) == ""

    def test_encode_results(self):
        records = [
            make_record(identity=1, tweet_id="t1", reply_text='He said "yes"', score="9",
                        job_id="job-a", url="https://x.com/1", original="orig, with comma"),
            make_record(identity=2, reply_text="no tweet id", score=4, job_id="job-b"),
        ]

        lines = encode_results(records).split("\n")

        assert lines[0] == "id,tweetId,replyText,originalTweetText,score,ranking,jobId,url"
        assert lines[1] == '"1","t1","He said ""yes""","orig, with comma","9","9","job-a","https://x.com/1"'
        assert lines[2] == '"2","tweet_2","no tweet id","original tweet","4","4","job-b",'

    def test_empty_results(self):
        assert encode_results([]) == ""

    def test_download_name(self):
        assert download_name("replies.csv") == "ranked_replies.csv"
        assert download_name(None) == "ranked_results.csv"

    def test_write_text_creates_parents(self, tmp_path):
        target = tmp_path / "nested" / "out.csv"
        write_text(target, "a,b")
        assert target.read_text(encoding="utf-8") == "a,b"
