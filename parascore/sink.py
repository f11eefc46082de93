"""
Result sinks: append-only destinations for processed results.

Every sink serializes its callers, so at most one worker commits a record
at a time and a record is either fully written or not at all.

Sinks never deduplicate. Running the same pool twice against the same file
appends a second copy of every row; the log is an append-only history, and
row order reflects completion order rather than input order.
"""

from __future__ import annotations

import csv
import io
import json
import logging
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import IO, List, Optional, Sequence

from .errors import SinkWriteFailure
from .types import ProcessedResult

logger = logging.getLogger(__name__)


class BaseResultSink(ABC):
    """
    Lock-guarded append-only sink.

    Subclasses implement ``_write``; it is always called with the lock held.
    Use as a context manager to scope the underlying resource.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._count = 0
        self._closed = False

    def append(self, result: ProcessedResult) -> None:
        """
        Persist one result.

        Raises:
            SinkWriteFailure: If the sink is closed or the write fails
        """
        with self._lock:
            if self._closed:
                raise SinkWriteFailure("sink is closed")
            self._write(result)
            self._count += 1

    @property
    def count(self) -> int:
        """Number of records appended through this sink instance."""
        with self._lock:
            return self._count

    @abstractmethod
    def _write(self, result: ProcessedResult) -> None:
        raise NotImplementedError

    def open(self) -> "BaseResultSink":
        return self

    def close(self) -> None:
        with self._lock:
            self._closed = True

    def __enter__(self) -> "BaseResultSink":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class MemoryResultSink(BaseResultSink):
    """Keeps results in a list; handy for tests and in-process aggregation."""

    def __init__(self) -> None:
        super().__init__()
        self._results: List[ProcessedResult] = []

    def _write(self, result: ProcessedResult) -> None:
        self._results.append(result)

    @property
    def results(self) -> List[ProcessedResult]:
        with self._lock:
            return list(self._results)


class FileResultSink(BaseResultSink):
    """
    Base for sinks writing rendered records to a file in append mode.

    The file is opened on first use (or on ``open``) and each record is
    rendered in memory, then written with one ``write`` and flushed.
    """

    def __init__(self, path: str | Path) -> None:
        super().__init__()
        self.path = Path(path)
        self._fh: Optional[IO[str]] = None

    def open(self) -> "FileResultSink":
        with self._lock:
            self._ensure_open()
        return self

    def _ensure_open(self) -> IO[str]:
        if self._fh is None:
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                is_new = not self.path.exists() or self.path.stat().st_size == 0
                self._fh = open(self.path, "a", encoding="utf-8", newline="")
                if is_new:
                    preamble = self._preamble()
                    if preamble:
                        self._fh.write(preamble)
                        self._fh.flush()
            except OSError as e:
                raise SinkWriteFailure(f"cannot open {self.path}: {e}") from e
            logger.debug("Opened result log %s", self.path)
        return self._fh

    def _preamble(self) -> str:
        return ""

    @abstractmethod
    def _render(self, result: ProcessedResult) -> str:
        raise NotImplementedError

    def _write(self, result: ProcessedResult) -> None:
        fh = self._ensure_open()
        try:
            record = self._render(result)
        except (TypeError, ValueError) as e:
            raise SinkWriteFailure(f"cannot render item {result.item_id!r}: {e}") from e
        try:
            fh.write(record)
            fh.flush()
        except OSError as e:
            raise SinkWriteFailure(f"cannot write to {self.path}: {e}") from e

    def close(self) -> None:
        with self._lock:
            self._closed = True
            if self._fh is not None:
                self._fh.close()
                self._fh = None

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(path={str(self.path)!r})"


class CsvResultSink(FileResultSink):
    """
    Tabular result log: header written once, one row per processed item.

    The header is only written when the file is new or empty.
    """

    def __init__(self, path: str | Path, header: Sequence[str] = ("id", "score")) -> None:
        super().__init__(path)
        self.header = tuple(header)

    def _csv_line(self, values: Sequence[object]) -> str:
        buf = io.StringIO()
        csv.writer(buf, lineterminator="\n").writerow(values)
        return buf.getvalue()

    def _preamble(self) -> str:
        return self._csv_line(self.header)

    def _render(self, result: ProcessedResult) -> str:
        return self._csv_line(result.as_row())


class JsonLinesResultSink(FileResultSink):
    """One JSON object per line: ``{"id": ..., "score": ...}``."""

    def _render(self, result: ProcessedResult) -> str:
        return json.dumps({"id": result.item_id, "score": result.score}) + "\n"


def read_csv_log(path: str | Path) -> List[dict]:
    """Read a CSV result log back as a list of row dicts."""
    with open(path, newline="", encoding="utf-8") as f:
        return list(csv.DictReader(f))
