from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv

from creator_rss.config import SettingsError, build_settings
from creator_rss.errors import SourceUnavailable
from creator_rss.models import KIND_ALIASES, PROFILES, SourceKind, parse_source_kind
from creator_rss.pipeline import FeedPipeline

app = typer.Typer(help="creator-rss CLI")
LOGGER = logging.getLogger(__name__)


def main() -> None:
    """Allow `python -m creator_rss` execution."""
    app()


@app.callback()
def _root() -> None:
    """Generate RSS feeds for Patreon creators, YouTube channels, and Bilibili users."""


@app.command("render")
def render(
    kind: str = typer.Argument(..., help="Source kind: api, syndication, extraction (or p, yt, bi)."),
    identifier: str = typer.Argument(..., help="Creator, channel, or user ID."),
    cache_dir: Optional[Path] = typer.Option(
        None,
        help="Existing directory for cached feeds (defaults to $CREATOR_RSS_CACHE_DIR; unset disables caching).",
    ),
    no_cache: bool = typer.Option(False, "--no-cache", help="Always render fresh and skip the cache."),
    max_age: str = typer.Option("1h", help="Maximum cache age (e.g., 30m, 1h, 2d)."),
    max_age_seconds: Optional[int] = typer.Option(
        None,
        help="Explicit max age in seconds (overrides --max-age).",
    ),
    timeout: Optional[float] = typer.Option(None, help="HTTP timeout in seconds for API and feed sources."),
    render_timeout: Optional[float] = typer.Option(
        None, help="Upper bound in seconds for rendering a Bilibili page."
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Write the feed to a file instead of stdout."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging."),
) -> None:
    """Render one feed and print it (or write it with --output)."""
    _configure_logging(verbose)
    load_dotenv()
    try:
        source_kind = parse_source_kind(kind)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="KIND") from exc
    try:
        settings = build_settings(
            cache_dir=cache_dir,
            use_cache=not no_cache,
            max_age_text=max_age,
            max_age_seconds=max_age_seconds,
            http_timeout=timeout,
            render_timeout=render_timeout,
        )
    except SettingsError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc

    if settings.cache_dir is None and not no_cache:
        LOGGER.info("No cache directory configured; rendering uncached")

    pipeline = FeedPipeline(settings)
    try:
        content = asyncio.run(pipeline.render(source_kind, identifier))
    except SourceUnavailable as exc:
        typer.secho(f"Error generating RSS feed: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc

    if output:
        output.write_text(content, encoding="utf-8")
        typer.echo(f"Wrote {PROFILES[source_kind].site_name} feed for {identifier} -> {output}")
    else:
        typer.echo(content)


@app.command("kinds")
def list_kinds() -> None:
    """List supported source kinds and their short aliases."""
    for kind in SourceKind:
        aliases = sorted(alias for alias, target in KIND_ALIASES.items() if target is kind)
        typer.echo(f"{kind.value:<12} {PROFILES[kind].site_name:<9} aliases: {', '.join(aliases)}")


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")
