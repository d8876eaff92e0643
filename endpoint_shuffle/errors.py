"""Exception hierarchy shared by the store, scanner and staging layers."""

from __future__ import annotations


class StoreError(Exception):
    """Base class for endpoint store failures."""


class TransientStoreError(StoreError):
    """The store reported lock contention; the operation may succeed if retried."""


class PermanentStoreError(StoreError):
    """Any store failure that retrying will not fix."""


class FatalOperationError(StoreError):
    """A write kept hitting lock contention until the retry budget ran out."""

    def __init__(self, message: str, attempts: int) -> None:
        super().__init__(message)
        self.attempts = attempts


class FetchError(Exception):
    """The scan source was unreachable or returned an unusable response."""


class StagingError(Exception):
    """The staging file could not be read or written."""


__all__ = [
    "FatalOperationError",
    "FetchError",
    "PermanentStoreError",
    "StagingError",
    "StoreError",
    "TransientStoreError",
]
