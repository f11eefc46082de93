"""
Fetchers: look up the data behind a work item.

A fetcher returns a ``FetchResult`` or ``None`` when the item has no
matching record. Missing records are a normal outcome; only I/O and query
errors are failures, and those surface as ``FetchFailure``.
"""

from __future__ import annotations

import logging
import sqlite3
from abc import ABC, abstractmethod
from contextlib import closing
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence

from .errors import FetchFailure
from .types import FetchResult, WorkItem
from .utils.rate_limiter import FetchThrottle

logger = logging.getLogger(__name__)

DEFAULT_QUERY = "SELECT text FROM documents WHERE id = ?"


class Connection(Protocol):
    def execute(self, query: str, params: Sequence[Any]) -> List[Sequence[Any]]:
        ...

    def close(self) -> None:
        ...


class DataSource(Protocol):
    def connect(self) -> Connection:
        ...


class SQLiteConnection:
    """Adapts a ``sqlite3`` connection to the ``Connection`` contract."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def execute(self, query: str, params: Sequence[Any]) -> List[Sequence[Any]]:
        cursor = self._conn.execute(query, tuple(params))
        try:
            return cursor.fetchall()
        finally:
            cursor.close()

    def close(self) -> None:
        self._conn.close()


class SQLiteDataSource:
    """
    SQLite-backed data source.

    Every ``connect`` opens a fresh connection, so a ``:memory:`` database
    is empty on each call; use a file path for real lookups.
    """

    def __init__(self, database: str | Path, timeout: float = 5.0) -> None:
        self.database = str(database)
        self.timeout = timeout

    def connect(self) -> SQLiteConnection:
        return SQLiteConnection(sqlite3.connect(self.database, timeout=self.timeout))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(database={self.database!r})"


class BaseFetcher(ABC):
    """Base interface for fetchers."""

    @abstractmethod
    def fetch(self, item: WorkItem) -> Optional[FetchResult]:
        raise NotImplementedError


class SQLFetcher(BaseFetcher):
    """
    Runs a parameterized lookup query for each item.

    A connection is acquired per call and released on every exit path,
    including failures. Nothing is pooled between calls.

    Example:
        >>> fetcher = SQLFetcher(SQLiteDataSource("docs.db"))
        >>> fetcher.fetch(42)
        FetchResult(item_id=42, text='...', metadata={...})
    """

    def __init__(
        self,
        source: DataSource,
        query: str = DEFAULT_QUERY,
        text_column: int = 0,
        throttle: Optional[FetchThrottle] = None,
    ) -> None:
        """
        Args:
            source: Data source providing connections
            query: Lookup query taking the item id as its single parameter
            text_column: Column of the first matching row holding the text
            throttle: Optional throttle/retry wrapper around each lookup
        """
        self.source = source
        self.query = query
        self.text_column = text_column
        self.throttle = throttle or FetchThrottle()

    def fetch(self, item: WorkItem) -> Optional[FetchResult]:
        try:
            rows = self.throttle.call(self._lookup, item)
        except Exception as e:
            raise FetchFailure(item, str(e)) from e

        if not rows:
            logger.debug("No record for item %s", item)
            return None

        row = rows[0]
        try:
            text = row[self.text_column]
        except (IndexError, KeyError) as e:
            raise FetchFailure(item, f"row has no column {self.text_column}") from e
        return FetchResult(
            item_id=item,
            text="" if text is None else str(text),
            metadata={"row_count": len(rows)},
        )

    def _lookup(self, item: WorkItem) -> List[Sequence[Any]]:
        with closing(self.source.connect()) as conn:
            return conn.execute(self.query, (item,))


class MappingFetcher(BaseFetcher):
    """Fetcher over an in-memory mapping of item id to text."""

    def __init__(self, records: Mapping[WorkItem, str]) -> None:
        self._records: Dict[WorkItem, str] = dict(records)

    def fetch(self, item: WorkItem) -> Optional[FetchResult]:
        text = self._records.get(item)
        if text is None:
            return None
        return FetchResult(item_id=item, text=text)
