"""Tests for paged retrieval of the question table."""

import logging

import pytest

from triviadedup.data.fetcher import FetchError, fetch_all_records
from triviadedup.data.store import InMemoryQuestionStore, StoreError


class TestFetchAllRecords:
    def test_pages_through_everything(self, paged_records):
        store = InMemoryQuestionStore(reversed(paged_records))
        sleeps = []
        result = fetch_all_records(store, page_size=1000, page_delay=0.1, sleep=sleeps.append)

        assert store.page_calls == [(0, 1000), (1000, 1000), (2000, 1000)]
        assert len(result.records) == 2500
        assert result.total_count == 2500
        assert result.pages_requested == 3
        assert not result.is_partial
        timestamps = [r.created_at for r in result.records]
        assert timestamps == sorted(timestamps)
        # delay only between pages
        assert sleeps == [0.1, 0.1]

    def test_failed_page_is_skipped(self, paged_records, caplog):
        store = InMemoryQuestionStore(paged_records, fail_pages=[1000])
        with caplog.at_level(logging.WARNING, logger="triviadedup"):
            result = fetch_all_records(store, sleep=lambda s: None)

        assert len(store.page_calls) == 3
        assert len(result.records) == 1500
        assert result.failed_pages == [1000]
        assert result.is_partial
        assert any("offset 1000" in r.getMessage() for r in caplog.records)
        assert any("1000 missing" in r.getMessage() for r in caplog.records)
        ids = [r.id for r in result.records]
        assert ids[999] == "q0999" and ids[1000] == "q2000"

    def test_count_failure_is_fatal(self, paged_records):
        store = InMemoryQuestionStore(paged_records, fail_count=True)
        with pytest.raises(FetchError):
            fetch_all_records(store, sleep=lambda s: None)
        assert store.page_calls == []

    def test_fetch_error_is_store_error(self):
        assert issubclass(FetchError, StoreError)

    def test_empty_store(self):
        store = InMemoryQuestionStore([])
        result = fetch_all_records(store, sleep=lambda s: None)
        assert result.records == []
        assert result.pages_requested == 0
        assert store.page_calls == []

    def test_short_read_stops_early(self, paged_records):
        class ShrinkingStore(InMemoryQuestionStore):
            def count(self):
                return 3000

        store = ShrinkingStore(paged_records)
        result = fetch_all_records(store, sleep=lambda s: None)
        assert store.page_calls[-1] == (2000, 1000)
        assert len(store.page_calls) == 3
        assert len(result.records) == 2500

        store = ShrinkingStore(paged_records[:1000])
        result = fetch_all_records(store, sleep=lambda s: None)
        assert store.page_calls == [(0, 1000), (1000, 1000)]
        assert len(result.records) == 1000

    def test_invalid_page_size(self, paged_records):
        with pytest.raises(ValueError):
            fetch_all_records(InMemoryQuestionStore(paged_records), page_size=0)

    def test_uneven_last_page(self, paged_records):
        store = InMemoryQuestionStore(paged_records[:2001])
        result = fetch_all_records(store, page_size=1000, sleep=lambda s: None)
        assert [offset for offset, _ in store.page_calls] == [0, 1000, 2000]
        assert len(result.records) == 2001
