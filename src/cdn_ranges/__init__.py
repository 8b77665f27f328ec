"""CDN IP ranges with a cached, fail-soft refresh."""

from .config import RangesConfig, load_config
from .errors import (
    BadStatusError,
    CorruptCacheError,
    DecodeError,
    FetchAttemptError,
    FetchFailedError,
    NoDataAvailableError,
    PersistError,
    RangesError,
    TransportError,
)
from .fetcher import RangeFetcher, RangeSource, RangesResult, get_ranges
from .schemas import CacheRecord, RangeSet, RawFeed
from .storage import CacheStore

__all__ = [
    "BadStatusError",
    "CacheRecord",
    "CacheStore",
    "CorruptCacheError",
    "DecodeError",
    "FetchAttemptError",
    "FetchFailedError",
    "NoDataAvailableError",
    "PersistError",
    "RangeFetcher",
    "RangeSet",
    "RangeSource",
    "RangesConfig",
    "RangesError",
    "RangesResult",
    "RawFeed",
    "TransportError",
    "get_ranges",
    "load_config",
]
