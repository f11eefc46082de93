"""Utility helpers for parascore."""

from .logging_config import setup_logging
from .rate_limiter import FetchThrottle, is_transient

__all__ = [
    "setup_logging",
    "FetchThrottle",
    "is_transient",
]
