from __future__ import annotations

import json
import tempfile
from pathlib import Path

import pytest

from cdn_ranges.config import RangesConfig, load_config


def test_defaults_target_cloudfront_with_daily_refresh() -> None:
    config = RangesConfig()

    assert config.source_url == "https://ip-ranges.amazonaws.com/ip-ranges.json"
    assert config.service_tag == "CLOUDFRONT"
    assert config.max_age_seconds == 86_400
    assert config.retry_count == 3
    assert config.cache_path.parent == Path(tempfile.gettempdir())
    assert config.fallback_to_stale is True
    assert config.backoff_for(1) == 0.0


def test_load_yaml_config(tmp_path) -> None:
    path = tmp_path / "ranges.yaml"
    path.write_text(
        "\n".join(
            [
                "service_tag: ' CLOUDFRONT_ORIGIN_FACING '",
                f"cache_path: {tmp_path / 'cache.yaml'}",
                "retry_count: 5",
                "max_age_seconds: 3600",
            ]
        ),
        encoding="utf-8",
    )

    config = load_config(path)

    assert config.service_tag == "CLOUDFRONT_ORIGIN_FACING"
    assert config.cache_path == tmp_path / "cache.yaml"
    assert config.retry_count == 5
    assert config.max_age_seconds == 3600


def test_load_json_config(tmp_path) -> None:
    path = tmp_path / "ranges.json"
    path.write_text(json.dumps({"source_url": "https://example.test/feed.json"}), encoding="utf-8")

    assert load_config(path).source_url == "https://example.test/feed.json"


def test_empty_config_file_uses_defaults(tmp_path) -> None:
    path = tmp_path / "ranges.yaml"
    path.write_text("", encoding="utf-8")

    config = load_config(path)

    assert config.service_tag == "CLOUDFRONT"
    assert config.retry_count == 3


@pytest.mark.parametrize(
    "content",
    [
        '{"retry_count": 0}',
        '{"unknown_option": true}',
        '{"service_tag": "   "}',
        '{"timeout_seconds": 0}',
        "- just\n- a list\n",
    ],
)
def test_invalid_config_raises_value_error(tmp_path, content) -> None:
    path = tmp_path / "ranges.yaml"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(ValueError):
        load_config(path)


def test_backoff_doubles_up_to_cap() -> None:
    config = RangesConfig(retry_backoff_seconds=0.5, retry_backoff_max_seconds=1.5)

    assert [config.backoff_for(attempt) for attempt in range(1, 5)] == [0.5, 1.0, 1.5, 1.5]
