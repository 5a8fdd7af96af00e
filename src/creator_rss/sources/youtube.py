from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import feedparser

from creator_rss.models import YOUTUBE_PROFILE, Campaign, Channel, NormalizedFeed, Post
from creator_rss.normalizer import repair_url, resolve_timestamp
from creator_rss.sources.base import HttpAdapter

LOGGER = logging.getLogger(__name__)
YOUTUBE_FEED_URL = "https://www.youtube.com/feeds/videos.xml"


@dataclass(frozen=True)
class FeedLink:
    rel: str
    href: str


@dataclass(frozen=True)
class SyndicationEntry:
    title: str
    link: str
    published: str
    description: str
    thumbnail_url: str


@dataclass(frozen=True)
class SyndicationPayload:
    title: str
    author_name: str
    links: tuple[FeedLink, ...]
    entries: tuple[SyndicationEntry, ...]

    def link_for(self, rel: str) -> str:
        for link in self.links:
            if link.rel == rel:
                return link.href
        return ""


class YouTubeAdapter(HttpAdapter[SyndicationPayload]):
    """Channel uploads from YouTube's Atom feed."""

    profile = YOUTUBE_PROFILE

    async def fetch_raw(self, identifier: str) -> SyndicationPayload:
        response = await self._get(YOUTUBE_FEED_URL, identifier, params=[("channel_id", identifier)])
        try:
            return parse_syndication_feed(response.text)
        except ValueError as exc:
            LOGGER.error("YouTube feed for %s could not be parsed: %s", identifier, exc)
            raise self._unavailable(identifier, str(exc)) from exc

    def normalize(self, raw: SyndicationPayload) -> NormalizedFeed:
        name = raw.author_name or raw.title or self.profile.unknown_name
        channel = Channel(display_name=name, home_url=repair_url(raw.link_for("alternate")))
        campaign = Campaign(summary=f"Videos from YouTube channel {raw.title or 'Unknown'}")
        posts = tuple(
            Post(
                title=entry.title,
                url=repair_url(entry.link),
                published_at=resolve_timestamp(entry.published, self._now),
                body_html=entry.description.replace("\n", "<br />"),
                thumbnail_url=repair_url(entry.thumbnail_url),
            )
            for entry in raw.entries
        )
        return NormalizedFeed(channel=channel, campaign=campaign, posts=posts)


def parse_syndication_feed(text: str) -> SyndicationPayload:
    """Reduce an Atom document to the fields the feed uses. Raises ValueError if it is not a feed."""
    parsed = feedparser.parse(text)
    feed = parsed.get("feed") or {}
    entries = parsed.get("entries") or []
    problem = getattr(parsed, "bozo_exception", None) if getattr(parsed, "bozo", False) else None
    if not entries and not feed.get("title"):
        raise ValueError(f"not a syndication feed: {problem or 'no title or entries'}")
    if problem is not None:
        LOGGER.warning("Feed reported parse issue: %s", problem)

    author = feed.get("author_detail") or {}
    links = tuple(
        FeedLink(rel=str(link.get("rel") or ""), href=str(link.get("href") or ""))
        for link in feed.get("links") or []
        if isinstance(link, dict)
    )
    return SyndicationPayload(
        title=_text(feed.get("title")),
        author_name=_text(author.get("name") or feed.get("author")),
        links=links,
        entries=tuple(_entry(entry) for entry in entries),
    )


def _entry(entry: Any) -> SyndicationEntry:
    return SyndicationEntry(
        title=_text(entry.get("title")),
        link=_text(entry.get("link")),
        published=_text(entry.get("published") or entry.get("updated")),
        description=entry.get("media_description") or entry.get("summary") or "",
        thumbnail_url=_thumbnail(entry.get("media_thumbnail")),
    )


def _thumbnail(value: Any) -> str:
    if isinstance(value, list):
        value = value[0] if value else None
    if isinstance(value, dict):
        return _text(value.get("url"))
    if isinstance(value, str):
        return value.strip()
    return ""


def _text(value: Any) -> str:
    if isinstance(value, str):
        return value.strip()
    return ""
