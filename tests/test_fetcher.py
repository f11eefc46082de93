"""
Unit tests for fetchers.

Covers SQLite lookups, absent records, failure wrapping, scoped release of
connections, and retries through the fetch throttle.
"""

from __future__ import annotations

import sqlite3
from contextlib import closing
from pathlib import Path
from typing import Any, List, Sequence

import pytest

from parascore.errors import FetchFailure
from parascore.fetcher import MappingFetcher, SQLFetcher, SQLiteDataSource
from parascore.types import FetchResult
from parascore.utils.rate_limiter import FetchThrottle


@pytest.fixture
def documents_db(tmp_path: Path) -> Path:
    path = tmp_path / "docs.db"
    with closing(sqlite3.connect(path)) as conn:
        with conn:
            conn.execute("CREATE TABLE documents (id INTEGER PRIMARY KEY, text TEXT)")
            conn.executemany(
                "INSERT INTO documents VALUES (?, ?)",
                [(1, "first document"), (2, None), (3, "third document")],
            )
    return path


class RecordingConnection:
    def __init__(self, source: "RecordingSource") -> None:
        self._source = source

    def execute(self, query: str, params: Sequence[Any]) -> List[Sequence[Any]]:
        self._source.executed.append(params)
        if self._source.failures:
            raise self._source.failures.pop(0)
        return self._source.rows

    def close(self) -> None:
        self._source.closed += 1


class RecordingSource:
    def __init__(self, rows=None, failures=None) -> None:
        self.rows = rows or []
        self.failures = list(failures or [])
        self.executed: List[Sequence[Any]] = []
        self.connected = 0
        self.closed = 0

    def connect(self) -> RecordingConnection:
        self.connected += 1
        return RecordingConnection(self)


class TestSQLFetcher:
    """Tests for SQLFetcher against SQLite and fake sources."""

    def test_fetch_existing_record(self, documents_db: Path) -> None:
        fetcher = SQLFetcher(SQLiteDataSource(documents_db))
        result = fetcher.fetch(1)
        assert result == FetchResult(item_id=1, text="first document")

    def test_missing_record_is_absent(self, documents_db: Path) -> None:
        fetcher = SQLFetcher(SQLiteDataSource(documents_db))
        assert fetcher.fetch(99) is None

    def test_null_text_becomes_empty_string(self, documents_db: Path) -> None:
        fetcher = SQLFetcher(SQLiteDataSource(documents_db))
        assert fetcher.fetch(2).text == ""

    def test_bad_query_raises_fetch_failure(self, documents_db: Path) -> None:
        fetcher = SQLFetcher(
            SQLiteDataSource(documents_db),
            query="SELECT text FROM no_such_table WHERE id = ?",
        )
        with pytest.raises(FetchFailure) as excinfo:
            fetcher.fetch(1)
        assert excinfo.value.item_id == 1
        assert "no_such_table" in excinfo.value.message

    def test_connection_released_on_success(self) -> None:
        source = RecordingSource(rows=[("text",)])
        SQLFetcher(source).fetch(5)
        assert source.connected == 1
        assert source.closed == 1
        assert source.executed == [(5,)]

    def test_connection_released_on_failure(self) -> None:
        source = RecordingSource(failures=[RuntimeError("boom")])
        with pytest.raises(FetchFailure):
            SQLFetcher(source).fetch(5)
        assert source.closed == 1

    def test_missing_column_is_failure(self) -> None:
        source = RecordingSource(rows=[("only",)])
        with pytest.raises(FetchFailure):
            SQLFetcher(source, text_column=3).fetch(1)

    def test_retries_transient_errors(self) -> None:
        source = RecordingSource(
            rows=[("recovered",)],
            failures=[sqlite3.OperationalError("database is locked")],
        )
        throttle = FetchThrottle(max_retries=2, retry_delay_seconds=0)
        result = SQLFetcher(source, throttle=throttle).fetch(8)
        assert result.text == "recovered"
        assert source.connected == 2
        assert source.closed == 2

    def test_does_not_retry_by_default(self) -> None:
        source = RecordingSource(failures=[sqlite3.OperationalError("database is locked")])
        with pytest.raises(FetchFailure):
            SQLFetcher(source).fetch(8)
        assert source.connected == 1


def test_mapping_fetcher():
    fetcher = MappingFetcher({1: "a"})
    assert fetcher.fetch(1) == FetchResult(item_id=1, text="a")
    assert fetcher.fetch(2) is None
