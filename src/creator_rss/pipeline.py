from __future__ import annotations

import logging
from typing import Mapping

import httpx

from creator_rss.browser import PageRenderer
from creator_rss.config import Settings
from creator_rss.models import SourceKind, parse_source_kind
from creator_rss.serializer import serialize_feed
from creator_rss.sources.base import SourceAdapter
from creator_rss.sources.registry import build_adapter
from creator_rss.storage.cache import FeedCache

LOGGER = logging.getLogger(__name__)


class FeedPipeline:
    """Coordinates cache lookup, source adaptation, and RSS rendering for one feed request.

    Only ``SourceUnavailable`` escapes ``render``; cache problems degrade to an
    uncached render.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        adapters: Mapping[SourceKind, SourceAdapter] | None = None,
        cache: FeedCache | None = None,
        client: httpx.AsyncClient | None = None,
        renderer: PageRenderer | None = None,
    ) -> None:
        self._settings = settings
        self._adapters = dict(adapters) if adapters else {}
        self._client = client
        self._renderer = renderer
        if cache is None and settings.cache_dir is not None:
            cache = FeedCache(settings.cache_dir)
        self._cache = cache

    def adapter_for(self, kind: SourceKind) -> SourceAdapter:
        adapter = self._adapters.get(kind)
        if adapter is not None:
            return adapter
        return build_adapter(kind, settings=self._settings, client=self._client, renderer=self._renderer)

    async def render(self, kind: SourceKind | str, identifier: str) -> str:
        source_kind = parse_source_kind(kind)
        adapter = self.adapter_for(source_kind)

        async def produce() -> str:
            feed = await adapter.build_feed(identifier)
            LOGGER.info(
                "Rendered %s feed for %s (%s posts)",
                adapter.profile.site_name,
                identifier,
                len(feed.posts),
            )
            return serialize_feed(feed, adapter.profile)

        if self._cache is None:
            return await produce()
        return await self._cache.get_or_render(
            source_kind,
            identifier,
            self._settings.cache_max_age_seconds,
            produce,
        )
