"""Throttle and retry wrapper for calls against an external data source."""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Optional, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)

TRANSIENT_MARKERS = (
    "locked",
    "busy",
    "timeout",
    "timed out",
    "connection",
    "temporarily",
    "unavailable",
)


def is_transient(error: BaseException) -> bool:
    """Guess whether ``error`` is worth retrying."""
    if isinstance(error, (ConnectionError, TimeoutError)):
        return True
    error_str = str(error).lower()
    return any(marker in error_str for marker in TRANSIENT_MARKERS)


class FetchThrottle:
    """
    Minimum-interval throttle with exponential backoff.

    Usage:
        throttle = FetchThrottle(requests_per_minute=600, max_retries=2)
        rows = throttle.call(connection.execute, query, params)

    With the defaults (no rate, no retries) ``call`` simply invokes the
    function once.
    """

    def __init__(
        self,
        requests_per_minute: Optional[float] = None,
        retry_delay_seconds: float = 0.5,
        max_retries: int = 0,
        retryable: Callable[[BaseException], bool] = is_transient,
    ) -> None:
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        self._min_interval = 60.0 / requests_per_minute if requests_per_minute else 0.0
        self._retry_delay = retry_delay_seconds
        self._max_retries = max_retries
        self._retryable = retryable
        self._last_call = 0.0
        self._lock = threading.Lock()

    @property
    def max_retries(self) -> int:
        return self._max_retries

    def _wait_turn(self) -> None:
        if not self._min_interval:
            return
        with self._lock:
            elapsed = time.monotonic() - self._last_call
            if elapsed < self._min_interval:
                time.sleep(self._min_interval - elapsed)
            self._last_call = time.monotonic()

    def call(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Call function with throttling and retry logic."""
        attempt = 0
        while True:
            self._wait_turn()
            try:
                return func(*args, **kwargs)
            except Exception as e:
                if attempt >= self._max_retries or not self._retryable(e):
                    raise
                delay = self._retry_delay * (2 ** attempt)
                attempt += 1
                logger.warning(
                    "Call failed (attempt %d/%d), retrying in %.2fs: %s",
                    attempt,
                    self._max_retries + 1,
                    delay,
                    e,
                )
                time.sleep(delay)
