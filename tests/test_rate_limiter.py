import sqlite3

import pytest

from parascore.utils.rate_limiter import FetchThrottle, is_transient


def test_is_transient():
    assert is_transient(ConnectionError("reset"))
    assert is_transient(TimeoutError())
    assert is_transient(sqlite3.OperationalError("database is locked"))
    assert not is_transient(ValueError("bad input"))


def test_call_passes_arguments():
    throttle = FetchThrottle()
    assert throttle.call(lambda a, b=0: a + b, 2, b=3) == 5


def test_non_retryable_raises_immediately():
    calls = []

    def fail():
        calls.append(1)
        raise ValueError("bad input")

    with pytest.raises(ValueError):
        FetchThrottle(max_retries=3, retry_delay_seconds=0).call(fail)
    assert len(calls) == 1


def test_gives_up_after_max_retries():
    calls = []

    def fail():
        calls.append(1)
        raise ConnectionError("down")

    with pytest.raises(ConnectionError):
        FetchThrottle(max_retries=2, retry_delay_seconds=0).call(fail)
    assert len(calls) == 3


def test_negative_retries_rejected():
    with pytest.raises(ValueError):
        FetchThrottle(max_retries=-1)
