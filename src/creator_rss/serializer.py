"""RSS 2.0 rendering for normalized feeds.

The document is assembled as text rather than through an XML builder: feed
readers already subscribed to these feeds depend on the exact element order,
the leading byte-order mark, and the CDATA-wrapped item descriptions.
"""

from __future__ import annotations

import re

from creator_rss.models import NormalizedFeed, Post, SourceProfile
from creator_rss.normalizer import format_rfc2822

BOM = "\ufeff"
XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'
RSS_OPEN = '<rss version="2.0" xmlns:atom="http://www.w3.org/2005/Atom">\n'
LANGUAGE = "en-US"
ANONYMOUS_AUTHOR = "Anonymous"
TRUNCATE_AT = 300

_TAG_RE = re.compile(r"<[^>]*>")
# Characters outside the XML 1.0 Char production; any one of them breaks the document.
_INVALID_XML_CHARS_RE = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")
# Order matters: "&" first, or the entities produced below get escaped twice.
_XML_ESCAPES = (
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&apos;"),
)


def serialize_feed(feed: NormalizedFeed, profile: SourceProfile) -> str:
    parts = [BOM, XML_DECLARATION, RSS_OPEN, "<channel>\n"]
    parts.append(render_channel(feed, profile))
    author = feed.channel.display_name
    for post in feed.posts:
        parts.append(render_item(post, author, profile))
    parts.append("</channel>\n")
    parts.append("</rss>")
    return "".join(parts)


def render_channel(feed: NormalizedFeed, profile: SourceProfile) -> str:
    name = feed.channel.display_name or profile.unknown_name
    home_url = escape_xml(feed.channel.home_url)
    # The self link points at the channel page, not at this feed; readers rely on it.
    return (
        f"<title>{escape_xml(name)} on {profile.site_name}</title>\n"
        f"<description>{escape_xml(strip_tags(feed.campaign.summary))}</description>\n"
        f"<link>{home_url}</link>\n"
        f"<language>{LANGUAGE}</language>\n"
        f"<generator>{profile.generator}</generator>\n"
        f'<atom:link href="{home_url}" rel="self" type="application/rss+xml" />\n'
    )


def render_item(post: Post, author: str, profile: SourceProfile) -> str:
    link = escape_xml(post.url)
    return (
        "<item>\n"
        f"<title>{escape_xml(post.title)}</title>\n"
        f"<author>{escape_xml(author or ANONYMOUS_AUTHOR)}</author>\n"
        f"<link>{link}</link>\n"
        f"<guid>{link}</guid>\n"
        f"<pubDate>{format_rfc2822(post.published_at)}</pubDate>\n"
        f"<description>{wrap_cdata(item_description(post, profile))}</description>\n"
        "</item>\n"
    )


def item_description(post: Post, profile: SourceProfile) -> str:
    """Thumbnail, teaser (or truncated body), and a link back to the source."""
    image_tag = ""
    if post.thumbnail_url:
        alt = post.title or profile.image_alt
        image_tag = f'<img src="{escape_xml(post.thumbnail_url)}" alt="{escape_xml(alt)}" />'
    text = post.teaser_text or post.body_html[:TRUNCATE_AT] + "..."
    return f'{image_tag}{text}<br><a href="{escape_xml(post.url)}">{profile.continue_label}</a>'


def escape_xml(value: str | None) -> str:
    if not value:
        return ""
    value = strip_invalid_xml_chars(value)
    for char, entity in _XML_ESCAPES:
        value = value.replace(char, entity)
    return value


def strip_tags(html: str | None) -> str:
    """Best-effort tag removal; malformed markup (a stray ``<``) may survive."""
    if not html:
        return ""
    return _TAG_RE.sub("", html)


def wrap_cdata(content: str) -> str:
    # "]]>" would close the section early; split it across two adjoining sections.
    content = strip_invalid_xml_chars(content)
    return "<![CDATA[" + content.replace("]]>", "]]]]><![CDATA[>") + "]]>"


def strip_invalid_xml_chars(text: str) -> str:
    return _INVALID_XML_CHARS_RE.sub("", text)
