"""On-disk cache for the last fetched RangeSet."""

from .cache import CacheStore

__all__ = ["CacheStore"]
