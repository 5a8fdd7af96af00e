from __future__ import annotations

from datetime import datetime

import httpx

from creator_rss.browser import PageRenderer, PlaywrightRenderer
from creator_rss.config import Settings
from creator_rss.models import SourceKind
from creator_rss.sources.base import DEFAULT_TIMEOUT, SourceAdapter
from creator_rss.sources.bilibili import DEFAULT_RENDER_TIMEOUT, BilibiliAdapter
from creator_rss.sources.patreon import PatreonAdapter
from creator_rss.sources.youtube import YouTubeAdapter


def build_adapter(
    kind: SourceKind,
    *,
    settings: Settings | None = None,
    client: httpx.AsyncClient | None = None,
    renderer: PageRenderer | None = None,
    now: datetime | None = None,
) -> SourceAdapter:
    """Return the adapter variant for ``kind``."""
    http_timeout = settings.http_timeout if settings else DEFAULT_TIMEOUT
    if kind is SourceKind.API:
        return PatreonAdapter(client=client, timeout=http_timeout, now=now)
    if kind is SourceKind.SYNDICATION:
        return YouTubeAdapter(client=client, timeout=http_timeout, now=now)
    if kind is SourceKind.EXTRACTION:
        render_timeout = settings.render_timeout if settings else DEFAULT_RENDER_TIMEOUT
        if renderer is None and settings is not None:
            renderer = PlaywrightRenderer(
                timeout_seconds=render_timeout,
                headless=settings.browser_headless,
                user_agent=settings.browser_user_agent,
            )
        return BilibiliAdapter(renderer=renderer, timeout=render_timeout, now=now)
    raise ValueError(f"Unsupported source kind: {kind!r}")
