from __future__ import annotations

import logging
import os
import tempfile
import time
from pathlib import Path

import yaml
from pydantic import ValidationError

from cdn_ranges.errors import CorruptCacheError, PersistError
from cdn_ranges.schemas import CacheRecord, RangeSet

logger = logging.getLogger(__name__)

CACHE_FILE_MODE = 0o600


class CacheStore:
    """Last known good RangeSet kept in a single YAML file.

    Freshness is the file mtime. Writes go through a temp file in the same
    directory and ``os.replace`` so readers never see a partial file.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load(self) -> CacheRecord | None:
        """Return the cached record, ``None`` if no file exists.

        Raises CorruptCacheError when the file exists but does not hold a
        RangeSet. Other OSErrors propagate as-is.
        """
        try:
            stat = self.path.stat()
        except FileNotFoundError:
            logger.info("cache miss path=%s reason=not_found", self.path)
            return None

        try:
            raw = self.path.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            logger.error("cache corrupt path=%s reason=encoding", self.path)
            raise CorruptCacheError(
                f"cache file {self.path} is not UTF-8 text: {exc}", path=self.path
            ) from exc
        range_set = self._parse(raw)
        logger.debug("cache loaded path=%s prefixes=%s", self.path, range_set.total)
        return CacheRecord(range_set=range_set, modified_at=stat.st_mtime, path=self.path)

    def is_fresh(self, max_age_seconds: float) -> bool:
        if max_age_seconds < 0:
            raise ValueError("max_age_seconds must be >= 0")
        try:
            modified_at = self.path.stat().st_mtime
        except FileNotFoundError:
            return False
        return time.time() - modified_at <= max_age_seconds

    def store(self, range_set: RangeSet) -> CacheRecord:
        payload = yaml.safe_dump(range_set.to_dict(), default_flow_style=False, sort_keys=True)
        directory = self.path.parent
        temp_name: str | None = None
        try:
            directory.mkdir(parents=True, exist_ok=True)
            # mkstemp creates the file 0600 before anything is written to it.
            fd, temp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=directory
            )
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                os.fchmod(handle.fileno(), CACHE_FILE_MODE)
                handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(temp_name, self.path)
            temp_name = None
            modified_at = self.path.stat().st_mtime
        except OSError as exc:
            raise PersistError(
                f"failed to write cache file {self.path}: {exc}", path=self.path
            ) from exc
        finally:
            if temp_name is not None:
                _remove_quietly(temp_name)

        logger.info(
            "cache stored path=%s ipv4=%s ipv6=%s",
            self.path,
            len(range_set.ipv4),
            len(range_set.ipv6),
        )
        return CacheRecord(range_set=range_set, modified_at=modified_at, path=self.path)

    def _parse(self, raw: str) -> RangeSet:
        try:
            payload = yaml.safe_load(raw)
        except yaml.YAMLError as exc:
            logger.error("cache corrupt path=%s reason=yaml", self.path)
            raise CorruptCacheError(
                f"cache file {self.path} is not valid YAML: {exc}", path=self.path
            ) from exc

        if not isinstance(payload, dict) or not {"ipv4", "ipv6"} <= payload.keys():
            logger.error("cache corrupt path=%s reason=shape", self.path)
            raise CorruptCacheError(
                f"cache file {self.path} does not contain an ipv4/ipv6 mapping", path=self.path
            )

        try:
            return RangeSet.model_validate(payload)
        except ValidationError as exc:
            logger.error("cache corrupt path=%s reason=schema", self.path)
            raise CorruptCacheError(
                f"cache file {self.path} has an invalid layout: {exc}", path=self.path
            ) from exc


def _remove_quietly(name: str) -> None:
    try:
        os.unlink(name)
    except FileNotFoundError:
        pass
