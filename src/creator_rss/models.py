from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class SourceKind(str, Enum):
    API = "api"
    SYNDICATION = "syndication"
    EXTRACTION = "extraction"


KIND_ALIASES = {
    "p": SourceKind.API,
    "patreon": SourceKind.API,
    "yt": SourceKind.SYNDICATION,
    "youtube": SourceKind.SYNDICATION,
    "bi": SourceKind.EXTRACTION,
    "bilibili": SourceKind.EXTRACTION,
}


def parse_source_kind(value: str | SourceKind) -> SourceKind:
    """Accept a kind name or one of the short route aliases (p, yt, bi)."""
    if isinstance(value, SourceKind):
        return value
    text = value.strip().lower()
    alias = KIND_ALIASES.get(text)
    if alias is not None:
        return alias
    try:
        return SourceKind(text)
    except ValueError:
        raise ValueError(f"Unknown source kind: {value!r}") from None


@dataclass(frozen=True)
class SourceProfile:
    """Per-source presentation constants used while normalizing and rendering."""

    kind: SourceKind
    site_name: str
    continue_label: str
    image_alt: str
    unknown_name: str
    cache_prefix: str

    @property
    def generator(self) -> str:
        return f"{self.site_name} RSS Generator v1.0"


PATREON_PROFILE = SourceProfile(
    kind=SourceKind.API,
    site_name="Patreon",
    continue_label="Continue Reading on Patreon",
    image_alt="Post image",
    unknown_name="Unknown Creator",
    cache_prefix="p_",
)
YOUTUBE_PROFILE = SourceProfile(
    kind=SourceKind.SYNDICATION,
    site_name="YouTube",
    continue_label="Continue Watching on YouTube",
    image_alt="Video thumbnail",
    unknown_name="Unknown Channel",
    cache_prefix="yt_",
)
BILIBILI_PROFILE = SourceProfile(
    kind=SourceKind.EXTRACTION,
    site_name="Bilibili",
    continue_label="Continue Watching on Bilibili",
    image_alt="Video thumbnail",
    unknown_name="Unknown User",
    cache_prefix="bi_",
)
PROFILES: dict[SourceKind, SourceProfile] = {
    profile.kind: profile for profile in (PATREON_PROFILE, YOUTUBE_PROFILE, BILIBILI_PROFILE)
}


@dataclass(frozen=True)
class Channel:
    display_name: str
    home_url: str
    image_url: str = ""


@dataclass(frozen=True)
class Campaign:
    summary: str = ""


@dataclass(frozen=True)
class Post:
    title: str
    url: str
    published_at: datetime
    body_html: str = ""
    teaser_text: str = ""
    thumbnail_url: str = ""


@dataclass(frozen=True)
class NormalizedFeed:
    channel: Channel
    campaign: Campaign
    posts: tuple[Post, ...] = ()
