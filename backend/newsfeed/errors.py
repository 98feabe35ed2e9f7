"""
Error hierarchy for the headline pipeline.

Adapter failures never reach the caller; they are converted into error
strings on the source metadata. Store errors are raised by the persistence
layer and handled by the aggregation service.
"""
from __future__ import annotations


class NewsfeedError(Exception):
    """Base exception for all pipeline errors."""


class AdapterError(NewsfeedError):
    """A source returned a payload the adapter could not use."""

    def __init__(self, source: str, message: str) -> None:
        self.source = source
        self.message = message
        super().__init__(f"{source}: {message}")


class StoreError(NewsfeedError):
    """Persisted store state could not be read or written."""


class StoreWriteError(StoreError):
    """Persisting the merged store failed; the in-memory result is still valid."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to write {path}: {reason}")
