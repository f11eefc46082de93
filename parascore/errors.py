"""Exception types raised at the pipeline's fetch, process and sink boundaries."""

from __future__ import annotations

from typing import Hashable


class ParascoreError(Exception):
    """Base class for pipeline errors."""


class ItemError(ParascoreError):
    """An error tied to a single work item."""

    def __init__(self, item_id: Hashable, message: str) -> None:
        super().__init__(f"item {item_id}: {message}")
        self.item_id = item_id
        self.message = message


class FetchFailure(ItemError):
    """The data source could not be reached or the lookup query failed."""


class ProcessingFailure(ItemError):
    """Tokenization or scoring raised for an item."""


class SinkWriteFailure(ParascoreError):
    """A result could not be persisted; the writing worker must stop."""
