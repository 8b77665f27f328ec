from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any

import typer
import yaml

from cdn_ranges.config import RangesConfig, default_cache_path, load_config
from cdn_ranges.errors import CorruptCacheError, RangesError
from cdn_ranges.fetcher import RangeFetcher
from cdn_ranges.storage import CacheStore

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)

app = typer.Typer(help="CDN IP ranges CLI")

_OUTPUT_FORMATS = ("yaml", "json")


@app.command("get")
def get_command(
    config_path: Path | None = typer.Option(
        None,
        "--config",
        help="YAML or JSON config file. Flags below override its values.",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
    source_url: str | None = typer.Option(None, "--source-url", help="Feed endpoint."),
    service_tag: str | None = typer.Option(
        None, "--service-tag", help="Service name to keep, e.g. CLOUDFRONT."
    ),
    cache_path: Path | None = typer.Option(None, "--cache-path", help="Cache file path."),
    max_age_hours: float | None = typer.Option(
        None, "--max-age-hours", min=0.0, help="Serve the cache without refreshing if younger."
    ),
    retries: int | None = typer.Option(None, "--retries", min=1, help="Fetch attempts."),
    timeout_seconds: float | None = typer.Option(
        None, "--timeout", min=0.1, help="Per-attempt HTTP timeout in seconds."
    ),
    output_format: str = typer.Option("yaml", "--format", help="Output format: yaml or json."),
) -> None:
    """Print the current ranges, refreshing the cache when it is stale."""
    if output_format not in _OUTPUT_FORMATS:
        typer.echo(f"unsupported --format: {output_format}", err=True)
        raise typer.Exit(code=1)

    try:
        config = _build_config(
            config_path,
            source_url=source_url,
            service_tag=service_tag,
            cache_path=cache_path,
            max_age_seconds=None if max_age_hours is None else max_age_hours * 3600,
            retry_count=retries,
            timeout_seconds=timeout_seconds,
        )
    except ValueError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc

    try:
        result = RangeFetcher().get_ranges_with_status(config)
    except RangesError as exc:
        typer.echo(f"{type(exc).__name__}: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    logging.info(
        "ranges served source=%s ipv4=%s ipv6=%s",
        result.source,
        len(result.range_set.ipv4),
        len(result.range_set.ipv6),
    )
    typer.echo(_render(result.range_set.to_dict(), output_format), nl=False)


@app.command("cache-info")
def cache_info(
    cache_path: Path = typer.Option(
        default_cache_path(), "--cache-path", help="Cache file path."
    ),
    max_age_hours: float = typer.Option(
        24.0, "--max-age-hours", min=0.0, help="Freshness window in hours."
    ),
) -> None:
    """Show what the cache file holds and whether it is still fresh."""
    store = CacheStore(cache_path)
    try:
        record = store.load()
    except (CorruptCacheError, OSError) as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc

    if record is None:
        typer.echo(f"cache missing path={cache_path}")
        return

    age_seconds = record.age_seconds(time.time())
    fresh = record.is_fresh(max_age_hours * 3600, now=time.time())
    typer.echo(
        f"path={record.path} ipv4={len(record.range_set.ipv4)} "
        f"ipv6={len(record.range_set.ipv6)} age_hours={age_seconds / 3600:.2f} "
        f"fresh={'yes' if fresh else 'no'}"
    )


def _build_config(config_path: Path | None, **overrides: Any) -> RangesConfig:
    base = load_config(config_path) if config_path is not None else RangesConfig()
    updates = {key: value for key, value in overrides.items() if value is not None}
    if not updates:
        return base
    return RangesConfig.model_validate({**base.model_dump(), **updates})


def _render(payload: dict[str, list[str]], output_format: str) -> str:
    if output_format == "json":
        return json.dumps(payload, indent=2) + "\n"
    return yaml.safe_dump(payload, default_flow_style=False, sort_keys=True)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
