from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Hashable, List, Optional

WorkItem = Hashable


@dataclass(frozen=True)
class FetchResult:
    """Data retrieved for one work item."""

    item_id: WorkItem
    text: str
    metadata: Dict[str, Any] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class ProcessedResult:
    item_id: WorkItem
    score: float

    def as_row(self) -> List[Any]:
        return [self.item_id, self.score]


class OutcomeStatus(Enum):
    """Terminal status of a single work item."""

    PROCESSED = "processed"
    ABSENT = "absent"
    FETCH_FAILED = "fetch_failed"
    PROCESS_FAILED = "process_failed"
    SINK_FAILED = "sink_failed"


@dataclass(frozen=True)
class ItemOutcome:
    """Result of running one item through fetch, process and write.

    Attributes:
        item_id: Identifier of the claimed item
        status: Terminal status for the item
        result: Processed result (only when status is PROCESSED)
        error: Error message (only for the *_FAILED statuses)
        worker_id: Worker that claimed the item
        latency_ms: Time spent on the item in milliseconds
    """

    item_id: WorkItem
    status: OutcomeStatus
    result: Optional[ProcessedResult] = None
    error: Optional[str] = None
    worker_id: Optional[int] = None
    latency_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.PROCESSED

    @property
    def failed(self) -> bool:
        return self.status in (
            OutcomeStatus.FETCH_FAILED,
            OutcomeStatus.PROCESS_FAILED,
            OutcomeStatus.SINK_FAILED,
        )


@dataclass
class RunSummary:
    """Aggregated result of a coordinator run.

    Attributes:
        outcomes: Per-item outcomes in completion order
        total_items: Size of the pool when the run started
        unclaimed: Items still in the pool when every worker was done
        worker_count: Number of workers spawned
        worker_errors: Messages of workers aborted by a system-level failure
        total_time_ms: Wall-clock time of the run
        cancelled: Whether the run was cancelled before the pool drained
    """

    outcomes: List[ItemOutcome]
    total_items: int
    unclaimed: int
    worker_count: int
    worker_errors: List[str] = field(default_factory=list)
    total_time_ms: float = 0.0
    cancelled: bool = False

    def count(self, status: OutcomeStatus) -> int:
        return sum(1 for o in self.outcomes if o.status is status)

    @property
    def processed(self) -> int:
        return self.count(OutcomeStatus.PROCESSED)

    @property
    def absent(self) -> int:
        return self.count(OutcomeStatus.ABSENT)

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if o.failed)

    @property
    def skipped(self) -> int:
        return self.absent + self.failed

    @property
    def worker_failures(self) -> int:
        return len(self.worker_errors)

    @property
    def ok(self) -> bool:
        return not self.worker_errors

    @property
    def throughput_ips(self) -> float:
        if self.total_time_ms <= 0:
            return 0.0
        return len(self.outcomes) / (self.total_time_ms / 1000)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "total_items": self.total_items,
            "processed": self.processed,
            "absent": self.absent,
            "fetch_failed": self.count(OutcomeStatus.FETCH_FAILED),
            "process_failed": self.count(OutcomeStatus.PROCESS_FAILED),
            "sink_failed": self.count(OutcomeStatus.SINK_FAILED),
            "unclaimed": self.unclaimed,
            "worker_count": self.worker_count,
            "worker_failures": self.worker_failures,
            "worker_errors": list(self.worker_errors),
            "cancelled": self.cancelled,
            "total_time_ms": self.total_time_ms,
            "throughput_ips": self.throughput_ips,
        }
