from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RangeSet(BaseModel):
    """CIDR prefixes for one service, split by address family.

    Order follows the source feed. An empty set is a legitimate answer.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    ipv4: tuple[str, ...] = ()
    ipv6: tuple[str, ...] = ()

    @field_validator("ipv4", "ipv6", mode="before")
    @classmethod
    def validate_prefix_lists(cls, value: Any) -> Any:
        if isinstance(value, str):
            raise ValueError("prefix list must be a sequence of strings, not a string")
        return value

    @property
    def total(self) -> int:
        return len(self.ipv4) + len(self.ipv6)

    @property
    def is_empty(self) -> bool:
        return self.total == 0

    def to_dict(self) -> dict[str, list[str]]:
        return {"ipv4": list(self.ipv4), "ipv6": list(self.ipv6)}


class _FeedEntry(BaseModel):
    model_config = ConfigDict(extra="ignore")

    service: str


class FeedIPv4Prefix(_FeedEntry):
    ip_prefix: str


class FeedIPv6Prefix(_FeedEntry):
    ipv6_prefix: str


class RawFeed(BaseModel):
    """Provider document: every published prefix tagged with its service."""

    model_config = ConfigDict(extra="ignore")

    prefixes: list[FeedIPv4Prefix] = Field(...)
    ipv6_prefixes: list[FeedIPv6Prefix] = Field(...)

    def filter(self, service_tag: str) -> RangeSet:
        return RangeSet(
            ipv4=tuple(entry.ip_prefix for entry in self.prefixes if entry.service == service_tag),
            ipv6=tuple(
                entry.ipv6_prefix for entry in self.ipv6_prefixes if entry.service == service_tag
            ),
        )


@dataclass(frozen=True, slots=True)
class CacheRecord:
    """Persisted RangeSet. Its age comes from the file mtime, not the content."""

    range_set: RangeSet
    modified_at: float
    path: Path

    def age_seconds(self, now: float) -> float:
        return now - self.modified_at

    def is_fresh(self, max_age_seconds: float, now: float) -> bool:
        return self.age_seconds(now) <= max_age_seconds
