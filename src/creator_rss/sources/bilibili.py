from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime

from bs4 import BeautifulSoup, Tag

from creator_rss.browser import PageRenderer, PlaywrightRenderer
from creator_rss.models import BILIBILI_PROFILE, Campaign, Channel, NormalizedFeed, Post
from creator_rss.normalizer import absolute_url, canonical_url, resolve_partial_date
from creator_rss.sources.base import BaseAdapter

LOGGER = logging.getLogger(__name__)
BILIBILI_BASE_URL = "https://www.bilibili.com"
SPACE_URL = "https://space.bilibili.com/{identifier}"
VIDEO_LIST_URL = "https://space.bilibili.com/{identifier}/video"
WAIT_SELECTORS = (".upinfo-detail", ".video-list")
DEFAULT_RENDER_TIMEOUT = 60.0


@dataclass(frozen=True)
class VideoCard:
    title: str
    href: str
    date_text: str
    thumbnail: str


@dataclass(frozen=True)
class ExtractionPayload:
    identifier: str
    display_name: str
    summary: str
    cards: tuple[VideoCard, ...]


class BilibiliAdapter(BaseAdapter[ExtractionPayload]):
    """Uploads scraped from a rendered Bilibili space page."""

    profile = BILIBILI_PROFILE

    def __init__(
        self,
        *,
        renderer: PageRenderer | None = None,
        timeout: float = DEFAULT_RENDER_TIMEOUT,
        now: datetime | None = None,
    ):
        super().__init__(now=now)
        self._renderer: PageRenderer = renderer or PlaywrightRenderer(timeout_seconds=timeout)
        self._timeout = timeout

    async def fetch_raw(self, identifier: str) -> ExtractionPayload:
        url = VIDEO_LIST_URL.format(identifier=identifier)
        LOGGER.info("Rendering Bilibili space page for %s", identifier)
        try:
            html = await asyncio.wait_for(
                self._renderer.render(url, wait_selectors=WAIT_SELECTORS),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as exc:
            LOGGER.error("Rendering %s exceeded %.0fs", url, self._timeout)
            raise self._unavailable(identifier, f"rendering timed out after {self._timeout:.0f}s") from exc
        except Exception as exc:  # noqa: BLE001
            LOGGER.error("Rendering %s failed: %s", url, exc)
            raise self._unavailable(identifier, str(exc) or type(exc).__name__) from exc
        return extract_space_page(html, identifier)

    def normalize(self, raw: ExtractionPayload) -> NormalizedFeed:
        name = raw.display_name or self.profile.unknown_name
        channel = Channel(display_name=name, home_url=SPACE_URL.format(identifier=raw.identifier))
        campaign = Campaign(summary=raw.summary or f"Videos from Bilibili user {name}")
        posts = tuple(
            Post(
                title=card.title,
                url=canonical_url(card.href, base=BILIBILI_BASE_URL),
                published_at=resolve_partial_date(card.date_text, self._now),
                thumbnail_url=absolute_url(card.thumbnail, base=BILIBILI_BASE_URL),
            )
            for card in raw.cards
        )
        return NormalizedFeed(channel=channel, campaign=campaign, posts=posts)


def extract_space_page(html: str, identifier: str) -> ExtractionPayload:
    soup = BeautifulSoup(html, "html.parser")
    cards: list[VideoCard] = []
    for card in soup.select(".upload-video-card"):
        anchor = card.select_one(".bili-video-card__title a")
        cards.append(
            VideoCard(
                title=_text(anchor),
                href=_attr_str(anchor, "href") or "",
                date_text=_text(card.select_one(".bili-video-card__subtitle span")),
                thumbnail=_attr_str(card.select_one(".bili-cover-card__thumbnail img"), "src") or "",
            )
        )
    return ExtractionPayload(
        identifier=identifier,
        display_name=_text(soup.select_one(".nickname")),
        summary=_text(soup.select_one(".pure-text")),
        cards=tuple(cards),
    )


def _text(node: Tag | None) -> str:
    if node is None:
        return ""
    return node.get_text().strip()


def _attr_str(tag: Tag | None, attr: str) -> str | None:
    if tag is None:
        return None
    raw = tag.get(attr)
    if isinstance(raw, str):
        return raw.strip()
    return None
