"""
Work pool shared by the coordinator's workers.

Items are loaded once at construction and removed the moment a worker
claims them. There is no way to put an item back, so the pool drains
monotonically and an item can never be handed to two workers.
"""

from __future__ import annotations

import logging
import random
import threading
from collections import deque
from typing import Any, Deque, Iterable, Optional

from .types import WorkItem

logger = logging.getLogger(__name__)


class WorkPool:
    """
    Bounded, lock-guarded pool of work items.

    Example:
        >>> pool = WorkPool([1, 2, 3])
        >>> pool.claim()
        1
        >>> pool.remaining()
        2

    Thread Safety:
        ``claim`` holds the lock only for the pop itself and never performs
        I/O, so contention between workers stays negligible.
    """

    def __init__(self, items: Iterable[WorkItem], lock: Optional[Any] = None) -> None:
        """
        Initialize the pool.

        Args:
            items: Identifiers to process, in claim order
            lock: Mutual-exclusion primitive guarding the pool
                (defaults to a new ``threading.Lock``)

        Raises:
            ValueError: If an identifier is None or appears more than once
        """
        queue: Deque[WorkItem] = deque()
        seen = set()
        for item in items:
            if item is None:
                raise ValueError("Work items must not be None.")
            if item in seen:
                raise ValueError(f"Duplicate work item '{item}'.")
            seen.add(item)
            queue.append(item)

        self._queue = queue
        self._lock = lock if lock is not None else threading.Lock()
        self._total = len(queue)
        self._claimed = 0

        logger.debug("WorkPool initialized with %d items", self._total)

    @classmethod
    def from_range(
        cls,
        start: int,
        stop: int,
        sample_size: Optional[int] = None,
        seed: Optional[int] = None,
        lock: Optional[Any] = None,
    ) -> "WorkPool":
        """
        Build a pool of integer identifiers from ``range(start, stop)``.

        Args:
            start: First identifier (inclusive)
            stop: Last identifier (exclusive)
            sample_size: Draw this many identifiers at random instead of
                taking the whole range
            seed: Seed for the random sample
            lock: Optional lock passed through to the pool
        """
        ids = range(start, stop)
        if sample_size is None:
            return cls(ids, lock=lock)
        if sample_size < 0 or sample_size > len(ids):
            raise ValueError(
                f"sample_size must be between 0 and {len(ids)}, got {sample_size}."
            )
        return cls(random.Random(seed).sample(ids, sample_size), lock=lock)

    def claim(self) -> Optional[WorkItem]:
        """
        Remove and return the next item.

        Returns:
            The claimed item, or ``None`` once the pool is exhausted.
            Exhaustion is the normal end of a worker's loop, not an error.
        """
        with self._lock:
            if not self._queue:
                return None
            self._claimed += 1
            return self._queue.popleft()

    def remaining(self) -> int:
        with self._lock:
            return len(self._queue)

    @property
    def claimed_count(self) -> int:
        with self._lock:
            return self._claimed

    @property
    def total(self) -> int:
        return self._total

    @property
    def is_empty(self) -> bool:
        return self.remaining() == 0

    def __len__(self) -> int:
        return self.remaining()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(total={self._total}, remaining={self.remaining()})"
