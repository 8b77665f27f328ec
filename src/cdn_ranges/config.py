from __future__ import annotations

import json
import tempfile
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

DEFAULT_SOURCE_URL = "https://ip-ranges.amazonaws.com/ip-ranges.json"
DEFAULT_SERVICE_TAG = "CLOUDFRONT"
DEFAULT_MAX_AGE_SECONDS = 24 * 60 * 60
DEFAULT_RETRY_COUNT = 3
CACHE_FILE_NAME = ".cdn_ranges_cloudfront.yaml"


def default_cache_path() -> Path:
    return Path(tempfile.gettempdir()) / CACHE_FILE_NAME


class RangesConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    source_url: str = DEFAULT_SOURCE_URL
    service_tag: str = DEFAULT_SERVICE_TAG
    max_age_seconds: float = Field(default=DEFAULT_MAX_AGE_SECONDS, ge=0)
    retry_count: int = Field(default=DEFAULT_RETRY_COUNT, ge=1)
    cache_path: Path = Field(default_factory=default_cache_path)
    timeout_seconds: float = Field(default=10.0, gt=0)
    retry_backoff_seconds: float = Field(default=0.0, ge=0)
    retry_backoff_max_seconds: float = Field(default=30.0, ge=0)
    fallback_to_stale: bool = True

    @field_validator("source_url", "service_tag")
    @classmethod
    def validate_non_empty(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("source_url and service_tag must not be empty")
        return normalized

    @field_validator("cache_path", mode="after")
    @classmethod
    def validate_cache_path(cls, value: Path) -> Path:
        return value.expanduser()

    def backoff_for(self, attempt: int) -> float:
        """Delay before retrying after ``attempt`` (1-based) failed."""
        if self.retry_backoff_seconds <= 0:
            return 0.0
        delay = self.retry_backoff_seconds * (2 ** (attempt - 1))
        return min(delay, self.retry_backoff_max_seconds)


def load_config(path: str | Path) -> RangesConfig:
    raw = Path(path).read_text(encoding="utf-8")
    payload = _parse_yaml_or_json(raw)
    try:
        return RangesConfig.model_validate(payload)
    except ValidationError as exc:
        raise ValueError(f"Invalid configuration: {exc}") from exc


def _parse_yaml_or_json(raw: str) -> dict[str, Any]:
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        try:
            parsed = yaml.safe_load(raw)
        except yaml.YAMLError as exc:
            raise ValueError(f"Configuration is neither JSON nor YAML: {exc}") from exc
    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ValueError("Configuration root must be an object.")
    return parsed
