"""Error taxonomy for range lookups."""

from __future__ import annotations

from pathlib import Path


class RangesError(Exception):
    """Base class for every failure surfaced by cdn_ranges."""


class FetchAttemptError(RangesError):
    """One network attempt failed. Retried until the attempt budget runs out."""


class TransportError(FetchAttemptError):
    """Connection error, timeout or TLS failure."""


class BadStatusError(FetchAttemptError):
    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class DecodeError(FetchAttemptError):
    """Response body is not the expected JSON document."""


class CorruptCacheError(RangesError):
    def __init__(self, message: str, path: str | Path) -> None:
        super().__init__(message)
        self.path = Path(path)


class PersistError(RangesError):
    def __init__(self, message: str, path: str | Path) -> None:
        super().__init__(message)
        self.path = Path(path)


class NoDataAvailableError(RangesError):
    """No cached data and every fetch attempt failed."""

    def __init__(self, message: str, attempts: int) -> None:
        super().__init__(message)
        self.attempts = attempts


class FetchFailedError(RangesError):
    """Refresh failed and stale fallback is disabled."""

    def __init__(self, message: str, attempts: int) -> None:
        super().__init__(message)
        self.attempts = attempts
