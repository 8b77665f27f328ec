from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import StrEnum

import requests
from pydantic import ValidationError

from cdn_ranges.config import RangesConfig
from cdn_ranges.errors import (
    BadStatusError,
    DecodeError,
    FetchAttemptError,
    FetchFailedError,
    NoDataAvailableError,
    PersistError,
    TransportError,
)
from cdn_ranges.schemas import CacheRecord, RangeSet, RawFeed
from cdn_ranges.storage import CacheStore

logger = logging.getLogger(__name__)


class RangeSource(StrEnum):
    CACHE = "cache"
    NETWORK = "network"
    STALE_CACHE = "stale_cache"


@dataclass(slots=True)
class RangesResult:
    range_set: RangeSet
    source: RangeSource
    attempts: int = 0
    persist_error: PersistError | None = None
    last_fetch_error: FetchAttemptError | None = None


class RangeFetcher:
    """Serve a provider's prefixes from a fresh cache, the network, or a stale cache.

    Order of preference:
    1. cached record younger than ``max_age_seconds`` (no network call),
    2. a fresh download, written through to the cache,
    3. the stale cached record when every attempt failed.

    A corrupt cache file is raised immediately instead of being overwritten.
    """

    def __init__(self, *, session: requests.Session | None = None) -> None:
        self.session = session or requests.Session()
        self.session.headers.setdefault("User-Agent", "cdn-ranges/0.1.0")

    def get_ranges(self, config: RangesConfig) -> RangeSet:
        return self.get_ranges_with_status(config).range_set

    def get_ranges_with_status(self, config: RangesConfig) -> RangesResult:
        store = CacheStore(config.cache_path)
        cached = self._load_cached(store)

        if cached is not None and cached.is_fresh(config.max_age_seconds, now=time.time()):
            logger.debug("serving fresh cache path=%s", cached.path)
            return RangesResult(range_set=cached.range_set, source=RangeSource.CACHE)

        range_set, attempts, last_error = self._refresh(config)
        if range_set is not None:
            persist_error = self._write_through(store, range_set)
            return RangesResult(
                range_set=range_set,
                source=RangeSource.NETWORK,
                attempts=attempts,
                persist_error=persist_error,
            )

        if cached is None:
            raise NoDataAvailableError(
                f"no cached ranges at {config.cache_path} and {attempts} fetch attempt(s) "
                f"from {config.source_url} failed: {last_error}",
                attempts=attempts,
            ) from last_error

        if not config.fallback_to_stale:
            raise FetchFailedError(
                f"{attempts} fetch attempt(s) from {config.source_url} failed: {last_error}",
                attempts=attempts,
            ) from last_error

        logger.warning(
            "refresh failed, serving stale cache path=%s age_seconds=%.0f attempts=%s",
            cached.path,
            cached.age_seconds(time.time()),
            attempts,
        )
        return RangesResult(
            range_set=cached.range_set,
            source=RangeSource.STALE_CACHE,
            attempts=attempts,
            last_fetch_error=last_error,
        )

    def fetch_feed(self, config: RangesConfig) -> RangeSet:
        """Single download attempt. Raises a FetchAttemptError subclass on failure."""
        logger.debug("downloading ranges url=%s", config.source_url)
        try:
            response = self.session.get(config.source_url, timeout=config.timeout_seconds)
        except requests.RequestException as exc:
            raise TransportError(f"request to {config.source_url} failed: {exc}") from exc

        if response.status_code != 200:
            raise BadStatusError(
                f"unexpected response code {response.status_code} from {config.source_url}",
                status_code=response.status_code,
            )

        try:
            feed = RawFeed.model_validate(response.json())
        except ValidationError as exc:
            raise DecodeError(f"unexpected feed layout from {config.source_url}: {exc}") from exc
        except ValueError as exc:
            raise DecodeError(f"response from {config.source_url} is not JSON: {exc}") from exc

        range_set = feed.filter(config.service_tag)
        logger.info(
            "ranges downloaded service=%s ipv4=%s ipv6=%s",
            config.service_tag,
            len(range_set.ipv4),
            len(range_set.ipv6),
        )
        return range_set

    @staticmethod
    def _load_cached(store: CacheStore) -> CacheRecord | None:
        try:
            return store.load()
        except OSError as exc:
            logger.warning("cache unreadable, refreshing path=%s error=%s", store.path, exc)
            return None

    def _refresh(
        self, config: RangesConfig
    ) -> tuple[RangeSet | None, int, FetchAttemptError | None]:
        last_error: FetchAttemptError | None = None
        for attempt in range(1, config.retry_count + 1):
            outcome = self._attempt(config)
            if isinstance(outcome, RangeSet):
                return outcome, attempt, None

            last_error = outcome
            logger.warning(
                "fetch attempt failed attempt=%s/%s error=%s",
                attempt,
                config.retry_count,
                outcome,
            )
            if attempt < config.retry_count:
                delay = config.backoff_for(attempt)
                if delay > 0:
                    time.sleep(delay)
        return None, config.retry_count, last_error

    def _attempt(self, config: RangesConfig) -> RangeSet | FetchAttemptError:
        try:
            return self.fetch_feed(config)
        except FetchAttemptError as exc:
            return exc

    @staticmethod
    def _write_through(store: CacheStore, range_set: RangeSet) -> PersistError | None:
        try:
            store.store(range_set)
        except PersistError as exc:
            logger.warning("cache write failed, returning fresh data path=%s error=%s", exc.path, exc)
            return exc
        return None


def get_ranges(
    config: RangesConfig | None = None, *, session: requests.Session | None = None
) -> RangeSet:
    return RangeFetcher(session=session).get_ranges(config or RangesConfig())
