"""
Unit tests for the work pool.

Covers claim ordering, exhaustion, duplicate rejection, sampling from a
range, and uniqueness of claims under concurrent workers.
"""

from __future__ import annotations

import threading
from typing import List

import pytest

from parascore.pool import WorkPool


class TestWorkPool:
    """Tests for single-threaded WorkPool behaviour."""

    def test_claims_in_input_order(self) -> None:
        pool = WorkPool([3, 1, 2])
        assert [pool.claim(), pool.claim(), pool.claim()] == [3, 1, 2]

    def test_empty_pool_returns_none(self) -> None:
        """Claiming from an empty pool returns the empty signal immediately."""
        pool = WorkPool([])
        assert pool.claim() is None
        assert pool.claim() is None
        assert pool.is_empty

    def test_exhaustion_after_drain(self) -> None:
        pool = WorkPool([1])
        assert pool.claim() == 1
        assert pool.claim() is None
        assert pool.claimed_count == 1
        assert pool.total == 1

    def test_remaining_and_len(self) -> None:
        pool = WorkPool(range(10))
        pool.claim()
        assert pool.remaining() == 9
        assert len(pool) == 9

    def test_rejects_duplicates(self) -> None:
        with pytest.raises(ValueError, match="Duplicate"):
            WorkPool([1, 2, 1])

    def test_rejects_none(self) -> None:
        """None is reserved as the exhaustion signal of claim()."""
        with pytest.raises(ValueError, match="None"):
            WorkPool([1, None, 3])

    def test_uses_injected_lock(self) -> None:
        class CountingLock:
            def __init__(self) -> None:
                self.acquired = 0
                self._lock = threading.Lock()

            def __enter__(self):
                self.acquired += 1
                return self._lock.__enter__()

            def __exit__(self, *exc):
                return self._lock.__exit__(*exc)

        lock = CountingLock()
        pool = WorkPool([1, 2], lock=lock)
        pool.claim()
        pool.claim()
        pool.claim()
        assert lock.acquired == 3


class TestFromRange:
    """Tests for WorkPool.from_range."""

    def test_full_range(self) -> None:
        pool = WorkPool.from_range(5, 8)
        assert [pool.claim() for _ in range(3)] == [5, 6, 7]

    def test_sample_is_reproducible(self) -> None:
        first = WorkPool.from_range(0, 1000, sample_size=20, seed=3)
        second = WorkPool.from_range(0, 1000, sample_size=20, seed=3)
        a = [first.claim() for _ in range(20)]
        b = [second.claim() for _ in range(20)]
        assert a == b
        assert len(set(a)) == 20
        assert all(0 <= x < 1000 for x in a)

    def test_sample_too_large(self) -> None:
        with pytest.raises(ValueError):
            WorkPool.from_range(0, 5, sample_size=6)


@pytest.mark.parametrize("workers", [1, 2, 8])
@pytest.mark.parametrize("size", [0, 1, 500])
def test_concurrent_claims_are_unique(workers: int, size: int) -> None:
    pool = WorkPool(range(size))
    barrier = threading.Barrier(workers)
    claimed: List[List[int]] = [[] for _ in range(workers)]

    def drain(slot: int) -> None:
        barrier.wait()
        while True:
            item = pool.claim()
            if item is None:
                return
            claimed[slot].append(item)

    threads = [threading.Thread(target=drain, args=(i,)) for i in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)

    flat = [item for chunk in claimed for item in chunk]
    assert len(flat) == size
    assert sorted(flat) == list(range(size))
    assert pool.claim() is None
