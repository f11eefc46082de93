"""
parascore: a bounded, parallel claim/fetch/score/write pipeline.

Key Components:
    - WorkPool: lock-guarded pool of work items, drained exactly once
    - SQLFetcher: per-item lookup against a data source
    - Processor: injected tokenizer plus scoring model
    - CsvResultSink / JsonLinesResultSink: serialized append-only result logs
    - Coordinator: fixed pool of worker threads run to exhaustion

Example:
    >>> from parascore import Coordinator, CsvResultSink, MappingFetcher, Processor, WorkPool
    >>> from parascore.processing import TokenCountModel, WhitespaceTokenizer
    >>> with CsvResultSink("scores.csv") as sink:
    ...     summary = Coordinator(
    ...         MappingFetcher({1: "hello world"}),
    ...         Processor(WhitespaceTokenizer(), TokenCountModel()),
    ...         sink,
    ...     ).run(WorkPool([1, 2]))
"""

from .coordinator import Coordinator, CoordinatorConfig, Worker, WorkerState
from .errors import FetchFailure, ParascoreError, ProcessingFailure, SinkWriteFailure
from .fetcher import BaseFetcher, MappingFetcher, SQLFetcher, SQLiteDataSource
from .pool import WorkPool
from .processing import Processor
from .sink import CsvResultSink, JsonLinesResultSink, MemoryResultSink
from .types import FetchResult, ItemOutcome, OutcomeStatus, ProcessedResult, RunSummary

__version__ = "0.1.0"

__all__ = [
    "Coordinator",
    "CoordinatorConfig",
    "Worker",
    "WorkerState",
    "FetchFailure",
    "ParascoreError",
    "ProcessingFailure",
    "SinkWriteFailure",
    "BaseFetcher",
    "MappingFetcher",
    "SQLFetcher",
    "SQLiteDataSource",
    "WorkPool",
    "Processor",
    "CsvResultSink",
    "JsonLinesResultSink",
    "MemoryResultSink",
    "FetchResult",
    "ItemOutcome",
    "OutcomeStatus",
    "ProcessedResult",
    "RunSummary",
]
