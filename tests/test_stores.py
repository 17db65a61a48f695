"""Tests for record schemas and the question store implementations."""

import io
import json
import logging
import urllib.error
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

import pytest

from triviadedup.data.rest import RestQuestionStore, parse_content_range
from triviadedup.data.schemas import Difficulty, QuestionRecord, parse_timestamp
from triviadedup.data.store import InMemoryQuestionStore, JsonlQuestionStore, StoreError

from conftest import make_record


ROW = {
    "id": "abc",
    "question_text": "Who painted 'Guernica'?",
    "answer_choices": ["Picasso", "Dali", "Miro", "Goya"],
    "correct_answer": "Picasso",
    "topic": "Art",
    "subtopic": None,
    "tags": ["painting", "spain"],
    "difficulty": "medium",
    "language": "en",
    "created_at": "2024-03-01T12:00:00Z",
}


class TestQuestionRecord:
    def test_from_row(self):
        record = QuestionRecord.from_row(ROW)
        assert record.id == "abc"
        assert record.answer_choices == ("Picasso", "Dali", "Miro", "Goya")
        assert record.tags == frozenset({"painting", "spain"})
        assert record.difficulty is Difficulty.MEDIUM
        assert record.created_at == datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)

    def test_tolerates_missing_and_json_text_columns(self):
        record = QuestionRecord.from_row({
            "id": 7,
            "question_text": None,
            "answer_choices": '["A", "B"]',
            "difficulty": "impossible",
        })
        assert record.id == "7"
        assert record.question_text == ""
        assert record.answer_choices == ("A", "B")
        assert record.correct_answer == ""
        assert record.difficulty is Difficulty.UNKNOWN
        assert record.created_at is None

    def test_missing_id_rejected(self):
        with pytest.raises(ValueError):
            QuestionRecord.from_row({"question_text": "x"})

    def test_to_row_round_trip(self):
        record = QuestionRecord.from_row(ROW)
        assert QuestionRecord.from_row(record.to_row()) == record

    def test_naive_timestamp_is_utc(self):
        assert parse_timestamp("2024-01-01T00:00:00").utcoffset() == timedelta(0)
        assert parse_timestamp(datetime(2024, 1, 1)).tzinfo == timezone.utc
        assert parse_timestamp("") is None
        assert parse_timestamp(None) is None

    def test_trimmed_fraction_from_store(self):
        record = QuestionRecord.from_row({
            "id": "a",
            "question_text": "q",
            "created_at": "2024-03-15T10:22:33.12345+00:00",
        })
        assert record.created_at == datetime(2024, 3, 15, 10, 22, 33, 123450, tzinfo=timezone.utc)


class TestParseTimestamp:
    @pytest.mark.parametrize("value,expected", [
        ("2024-03-15T10:22:33.12345+00:00", datetime(2024, 3, 15, 10, 22, 33, 123450, tzinfo=timezone.utc)),
        ("2024-03-15T10:22:33.1+00:00", datetime(2024, 3, 15, 10, 22, 33, 100000, tzinfo=timezone.utc)),
        ("2024-03-15T10:22:33.123456+00:00", datetime(2024, 3, 15, 10, 22, 33, 123456, tzinfo=timezone.utc)),
        ("2024-03-15 10:22:33.12345+00", datetime(2024, 3, 15, 10, 22, 33, 123450, tzinfo=timezone.utc)),
        ("2024-03-15T10:22:33+00", datetime(2024, 3, 15, 10, 22, 33, tzinfo=timezone.utc)),
        ("2024-03-15T10:22:33Z", datetime(2024, 3, 15, 10, 22, 33, tzinfo=timezone.utc)),
        ("2024-03-15T12:22:33+02:00", datetime(2024, 3, 15, 10, 22, 33, tzinfo=timezone.utc)),
    ])
    def test_store_shapes(self, value, expected):
        parsed = parse_timestamp(value)
        assert parsed == expected
        assert parsed.utcoffset() == timedelta(0)

    def test_garbage_rejected(self):
        with pytest.raises(ValueError):
            parse_timestamp("not a timestamp")


class TestInMemoryStore:
    def test_orders_by_created_at(self):
        store = InMemoryQuestionStore([
            make_record("late", "q", minutes=10),
            make_record("early", "q", minutes=1),
        ])
        assert [r.id for r in store.fetch_page(0, 10)] == ["early", "late"]

    def test_delete_counts_only_existing(self):
        store = InMemoryQuestionStore([make_record("a", "q"), make_record("b", "q", minutes=1)])
        assert store.delete_batch(["a", "zzz"]) == 1
        assert store.count() == 1
        assert store.delete_calls == [["a", "zzz"]]

    def test_fault_injection(self):
        store = InMemoryQuestionStore([make_record("a", "q")], fail_delete_batches=[1])
        with pytest.raises(StoreError):
            store.delete_batch(["a"])
        assert store.count() == 1


class TestJsonlStore:
    def test_load_and_delete_rewrites_file(self, jsonl_file):
        store = JsonlQuestionStore(jsonl_file)
        assert store.count() == 6
        assert store.delete_batch(["sn-1", "cap-2"]) == 2

        reloaded = JsonlQuestionStore(jsonl_file)
        ids = {r.id for r in reloaded.records}
        assert reloaded.count() == 4
        assert "sn-1" not in ids and "cap-2" not in ids

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            JsonlQuestionStore(tmp_path / "nope.jsonl")

    def test_invalid_row(self, tmp_path):
        path = tmp_path / "bad.jsonl"
        path.write_text(json.dumps({"question_text": "no id"}) + "\n")
        with pytest.raises(ValueError, match="Invalid row 1"):
            JsonlQuestionStore(path)


class TestContentRange:
    @pytest.mark.parametrize("value,expected", [("0-999/2500", 2500), ("*/0", 0), ("*/42", 42)])
    def test_parse(self, value, expected):
        assert parse_content_range(value) == expected

    @pytest.mark.parametrize("value", [None, "", "bytes"])
    def test_invalid(self, value):
        with pytest.raises(StoreError):
            parse_content_range(value)


def _response(body=b"", headers=None):
    resp = MagicMock()
    resp.read.return_value = body
    resp.headers = headers or {}
    return resp


class TestRestStore:
    def setup_method(self):
        self.store = RestQuestionStore("https://proj.supabase.co/", "service-key")

    def test_requires_url_and_key(self):
        with pytest.raises(ValueError):
            RestQuestionStore("", "key")

    @patch("urllib.request.urlopen")
    def test_count(self, mock_urlopen):
        mock_urlopen.return_value.__enter__.return_value = _response(headers={"Content-Range": "*/2500"})
        assert self.store.count() == 2500

        req = mock_urlopen.call_args[0][0]
        assert req.get_method() == "HEAD"
        assert req.full_url == "https://proj.supabase.co/rest/v1/trivia_questions?select=id"
        assert req.get_header("Prefer") == "count=exact"
        assert req.get_header("Apikey") == "service-key"
        assert req.get_header("Authorization") == "Bearer service-key"

    @patch("urllib.request.urlopen")
    def test_fetch_page(self, mock_urlopen):
        mock_urlopen.return_value.__enter__.return_value = _response(json.dumps([ROW]).encode("utf-8"))
        records = self.store.fetch_page(1000, 1000)
        assert [r.id for r in records] == ["abc"]

        req = mock_urlopen.call_args[0][0]
        assert req.get_method() == "GET"
        assert "order=created_at.asc" in req.full_url
        assert "offset=1000" in req.full_url
        assert "limit=1000" in req.full_url
        assert "select=id,question_text," in req.full_url

    @patch("urllib.request.urlopen")
    def test_delete_batch(self, mock_urlopen):
        body = json.dumps([{"id": "a"}, {"id": "b"}]).encode("utf-8")
        mock_urlopen.return_value.__enter__.return_value = _response(body)
        assert self.store.delete_batch(["a", "b", "gone"]) == 2

        req = mock_urlopen.call_args[0][0]
        assert req.get_method() == "DELETE"
        assert req.full_url.endswith('?id=in.("a","b","gone")')
        assert req.get_header("Prefer") == "return=representation"

    @patch("urllib.request.urlopen")
    def test_delete_empty_batch_makes_no_request(self, mock_urlopen):
        assert self.store.delete_batch([]) == 0
        mock_urlopen.assert_not_called()

    @patch("urllib.request.urlopen")
    def test_http_error_becomes_store_error(self, mock_urlopen):
        mock_urlopen.side_effect = urllib.error.HTTPError(
            "https://proj.supabase.co", 503, "Service Unavailable", {}, io.BytesIO(b"")
        )
        with pytest.raises(StoreError) as excinfo:
            self.store.fetch_page(0, 1000)
        assert excinfo.value.status_code == 503

    @patch("urllib.request.urlopen")
    def test_url_error_becomes_store_error(self, mock_urlopen):
        mock_urlopen.side_effect = urllib.error.URLError("connection refused")
        with pytest.raises(StoreError) as excinfo:
            self.store.count()
        assert excinfo.value.status_code is None

    @patch("urllib.request.urlopen")
    def test_bad_row_skipped_rest_of_page_kept(self, mock_urlopen, caplog):
        rows = [
            ROW,
            {"id": "broken", "question_text": "q", "created_at": "yesterday-ish"},
            {"question_text": "no id"},
            dict(ROW, id="def", created_at="2024-03-15 10:22:33.12345+00"),
        ]
        mock_urlopen.return_value.__enter__.return_value = _response(json.dumps(rows).encode("utf-8"))
        with caplog.at_level(logging.WARNING, logger="triviadedup.data.rest"):
            records = self.store.fetch_page(2000, 1000)

        assert [r.id for r in records] == ["abc", "def"]
        skipped = [r for r in caplog.records if r.name == "triviadedup.data.rest"]
        assert [(r.row_offset, r.row_id) for r in skipped] == [(2001, "broken"), (2002, None)]
        assert "offset 2001 (id=broken)" in skipped[0].getMessage()

    @patch("urllib.request.urlopen")
    def test_malformed_rows(self, mock_urlopen):
        mock_urlopen.return_value.__enter__.return_value = _response(b'{"message": "nope"}')
        with pytest.raises(StoreError):
            self.store.fetch_page(0, 10)
