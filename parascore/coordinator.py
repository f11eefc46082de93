"""
Coordinator for parascore.

Spawns a fixed pool of worker threads over a shared ``WorkPool``. Each
worker loops claim -> fetch -> process -> write until the pool is empty,
and the coordinator blocks until every worker is done.

Architecture:
    - Item-level parallelism: workers share nothing but the pool and the sink
    - Per-item failures are logged once and recorded, never propagated
    - A sink failure stops only the worker that hit it
    - Cooperative cancellation checked before every claim

Ordering:
    Results reach the sink in completion order. Neither claim order nor
    input order is preserved across workers; treat the log as an unordered
    collection keyed by item id.
"""

from __future__ import annotations

import logging
import os
import threading
import time
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional

from .errors import FetchFailure, ProcessingFailure
from .fetcher import BaseFetcher
from .pool import WorkPool
from .processing import Processor
from .sink import BaseResultSink
from .tracking import RunTracker
from .types import ItemOutcome, OutcomeStatus, RunSummary, WorkItem

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


class WorkerState(Enum):
    """Position of a worker in its claim/fetch/process/write loop."""

    IDLE = "idle"
    CLAIMING = "claiming"
    FETCHING = "fetching"
    PROCESSING = "processing"
    WRITING = "writing"
    DONE = "done"


def default_worker_count(reserve_cores: int = 1) -> int:
    """All available CPUs but ``reserve_cores``, and never fewer than one."""
    return max(1, (os.cpu_count() or 1) - reserve_cores)


@dataclass
class CoordinatorConfig:
    """Configuration for the coordinator.

    Attributes:
        workers: Number of workers (None: CPU count minus reserve_cores)
        reserve_cores: CPUs left free when workers is not given
        log_tracebacks: Attach the stack trace to per-item error records
        progress_every: Log progress every N finished items (0 disables)
    """

    workers: Optional[int] = None
    reserve_cores: int = 1
    log_tracebacks: bool = True
    progress_every: int = 100

    def resolved_workers(self) -> int:
        if self.workers is None:
            return default_worker_count(self.reserve_cores)
        if self.workers < 1:
            raise ValueError(f"workers must be >= 1, got {self.workers}")
        return self.workers


class Worker:
    """
    One unit of concurrent execution.

    States: IDLE -> CLAIMING -> FETCHING -> PROCESSING -> WRITING -> IDLE,
    ending in DONE once the pool is exhausted, the run is cancelled, or a
    system-level failure aborts the worker (``error`` is set in that case).
    """

    def __init__(
        self,
        worker_id: int,
        pool: WorkPool,
        fetcher: BaseFetcher,
        processor: Processor,
        sink: BaseResultSink,
        cancel_event: threading.Event,
        on_outcome: Optional[Callable[[ItemOutcome], None]] = None,
        log_tracebacks: bool = True,
    ) -> None:
        self.worker_id = worker_id
        self._pool = pool
        self._fetcher = fetcher
        self._processor = processor
        self._sink = sink
        self._cancel = cancel_event
        self._on_outcome = on_outcome
        self._log_tracebacks = log_tracebacks
        self._state = WorkerState.IDLE
        self.outcomes: List[ItemOutcome] = []
        self.error: Optional[str] = None

    @property
    def state(self) -> WorkerState:
        return self._state

    def _set_state(self, state: WorkerState) -> None:
        logger.debug("worker %d: %s -> %s", self.worker_id, self._state.value, state.value)
        self._state = state

    def run(self) -> "Worker":
        """Loop until the pool is empty; never raises."""
        try:
            while not self._cancel.is_set():
                self._set_state(WorkerState.CLAIMING)
                item = self._pool.claim()
                if item is None:
                    break

                outcome = self._handle(item)
                self.outcomes.append(outcome)
                if self._on_outcome:
                    self._on_outcome(outcome)

                if outcome.status is OutcomeStatus.SINK_FAILED:
                    self.error = outcome.error
                    break
                self._set_state(WorkerState.IDLE)
        except Exception as e:
            self.error = f"worker {self.worker_id} aborted: {e}"
            logger.error(
                "Worker %d aborted: %s",
                self.worker_id,
                e,
                exc_info=self._log_tracebacks,
            )
        finally:
            self._set_state(WorkerState.DONE)
        return self

    def _handle(self, item: WorkItem) -> ItemOutcome:
        start_time = time.time()

        def outcome(status: OutcomeStatus, **kwargs) -> ItemOutcome:
            return ItemOutcome(
                item_id=item,
                status=status,
                worker_id=self.worker_id,
                latency_ms=(time.time() - start_time) * 1000,
                **kwargs,
            )

        self._set_state(WorkerState.FETCHING)
        try:
            fetched = self._fetcher.fetch(item)
        except Exception as e:
            message = e.message if isinstance(e, FetchFailure) else str(e)
            self._log_item_error("Fetch", item, message, e)
            return outcome(OutcomeStatus.FETCH_FAILED, error=message)

        if fetched is None:
            return outcome(OutcomeStatus.ABSENT)

        self._set_state(WorkerState.PROCESSING)
        try:
            result = self._processor.process(fetched)
        except Exception as e:
            message = e.message if isinstance(e, ProcessingFailure) else str(e)
            self._log_item_error("Processing", item, message, e)
            return outcome(OutcomeStatus.PROCESS_FAILED, error=message)

        self._set_state(WorkerState.WRITING)
        try:
            self._sink.append(result)
        except Exception as e:
            logger.error(
                "Write failed for item %s, worker %d stopping: %s",
                item,
                self.worker_id,
                e,
                exc_info=e if self._log_tracebacks else None,
                extra={"item_id": item, "stage": "write"},
            )
            return outcome(OutcomeStatus.SINK_FAILED, error=str(e))

        return outcome(OutcomeStatus.PROCESSED, result=result)

    def _log_item_error(
        self, stage: str, item: WorkItem, message: str, error: Exception
    ) -> None:
        logger.error(
            "%s failed for item %s: %s",
            stage,
            item,
            message,
            exc_info=error if self._log_tracebacks else None,
            extra={"item_id": item, "stage": stage.lower()},
        )


class Coordinator:
    """
    Runs a fixed pool of workers to exhaustion.

    Example:
        >>> coordinator = Coordinator(fetcher, processor, sink,
        ...                           CoordinatorConfig(workers=4))
        >>> summary = coordinator.run(WorkPool(range(100)))
        >>> print(f"{summary.processed} processed, {summary.skipped} skipped")

    Thread Safety:
        ``run`` is not reentrant; use one coordinator per concurrent run.
        ``cancel`` may be called from any thread.
    """

    def __init__(
        self,
        fetcher: BaseFetcher,
        processor: Processor,
        sink: BaseResultSink,
        config: Optional[CoordinatorConfig] = None,
        tracker: Optional[RunTracker] = None,
    ) -> None:
        self.fetcher = fetcher
        self.processor = processor
        self.sink = sink
        self._config = config or CoordinatorConfig()
        self._tracker = tracker or RunTracker()
        self._cancel_event = threading.Event()
        self._workers: List[Worker] = []

        # Outcome aggregation across workers
        self._lock = threading.Lock()
        self._outcomes: List[ItemOutcome] = []

        logger.info(
            "Coordinator initialized: workers=%d, sink=%r",
            self._config.resolved_workers(),
            sink,
        )

    @property
    def config(self) -> CoordinatorConfig:
        return self._config

    def cancel(self) -> None:
        """Ask workers to stop before their next claim."""
        logger.info("Cancellation requested")
        self._cancel_event.set()

    def worker_states(self) -> Dict[int, WorkerState]:
        return {w.worker_id: w.state for w in self._workers}

    def run(
        self,
        pool: WorkPool,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> RunSummary:
        """
        Drain ``pool`` with the configured number of workers.

        Args:
            pool: Work pool to drain
            progress_callback: Optional callback(done, total) after each item

        Returns:
            RunSummary with per-item outcomes and aggregate counts
        """
        worker_count = self._config.resolved_workers()
        total = pool.remaining()
        self._outcomes = []

        def on_outcome(outcome: ItemOutcome) -> None:
            with self._lock:
                self._outcomes.append(outcome)
                done = len(self._outcomes)
            every = self._config.progress_every
            if every and done % every == 0:
                logger.info(
                    "Progress: %d/%d (%.1f%%)", done, total, 100 * done / max(1, total)
                )
            if progress_callback:
                progress_callback(done, total)

        self._workers = [
            Worker(
                worker_id=i,
                pool=pool,
                fetcher=self.fetcher,
                processor=self.processor,
                sink=self.sink,
                cancel_event=self._cancel_event,
                on_outcome=on_outcome,
                log_tracebacks=self._config.log_tracebacks,
            )
            for i in range(worker_count)
        ]

        logger.info("Starting run: %d items, %d workers", total, worker_count)
        start_time = time.time()

        worker_errors: List[str] = []
        with ThreadPoolExecutor(
            max_workers=worker_count,
            thread_name_prefix="parascore_worker",
        ) as executor:
            futures = [executor.submit(worker.run) for worker in self._workers]
            wait(futures)

        for future, worker in zip(futures, self._workers):
            exc = future.exception()
            if exc is not None:
                worker_errors.append(f"worker {worker.worker_id} crashed: {exc}")
            elif worker.error:
                worker_errors.append(worker.error)

        cancelled = self._cancel_event.is_set()
        self._cancel_event.clear()

        with self._lock:
            outcomes = list(self._outcomes)

        summary = RunSummary(
            outcomes=outcomes,
            total_items=total,
            unclaimed=pool.remaining(),
            worker_count=worker_count,
            worker_errors=worker_errors,
            total_time_ms=(time.time() - start_time) * 1000,
            cancelled=cancelled,
        )

        logger.info(
            "Run complete: %d/%d processed, %d absent, %d failed, %d unclaimed, %.1fs",
            summary.processed,
            summary.total_items,
            summary.absent,
            summary.failed,
            summary.unclaimed,
            summary.total_time_ms / 1000,
        )
        if worker_errors:
            logger.error(
                "%d of %d workers aborted", len(worker_errors), worker_count
            )

        try:
            self._tracker.log_run_summary(summary.as_dict())
        except Exception as e:
            logger.error("Failed to record run summary: %s", e)
        return summary
