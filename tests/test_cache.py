from __future__ import annotations

from pathlib import Path

import pytest

from creator_rss.errors import SourceUnavailable
from creator_rss.models import SourceKind
from creator_rss.storage import FeedCache, cache_filename


class CountingRender:
    def __init__(self, content: str = "fresh feed"):
        self.content = content
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        return self.content


def _cache_with_age(tmp_path: Path, kind: SourceKind, identifier: str, age: float) -> FeedCache:
    path = tmp_path / cache_filename(kind, identifier)
    path.write_text("cached feed", encoding="utf-8")
    modified = path.stat().st_mtime
    return FeedCache(tmp_path, clock=lambda: modified + age)


@pytest.mark.asyncio
async def test_fresh_entry_is_served_without_rendering(tmp_path: Path) -> None:
    cache = _cache_with_age(tmp_path, SourceKind.API, "42", 1800)
    render = CountingRender()

    content = await cache.get_or_render(SourceKind.API, "42", 3600, render)

    assert content == "cached feed"
    assert render.calls == 0


@pytest.mark.asyncio
async def test_stale_entry_is_regenerated_and_overwritten(tmp_path: Path) -> None:
    cache = _cache_with_age(tmp_path, SourceKind.API, "42", 4000)
    render = CountingRender()

    content = await cache.get_or_render(SourceKind.API, "42", 3600, render)

    assert content == "fresh feed"
    assert render.calls == 1
    assert (tmp_path / "p_42.xml").read_text(encoding="utf-8") == "fresh feed"


@pytest.mark.asyncio
async def test_entry_exactly_max_age_old_is_stale(tmp_path: Path) -> None:
    cache = _cache_with_age(tmp_path, SourceKind.SYNDICATION, "UCabc", 3600)
    render = CountingRender()

    assert await cache.get_or_render(SourceKind.SYNDICATION, "UCabc", 3600, render) == "fresh feed"
    assert render.calls == 1


@pytest.mark.asyncio
async def test_miss_writes_file_under_kind_prefix(tmp_path: Path) -> None:
    cache = FeedCache(tmp_path)
    render = CountingRender("<rss/>")

    await cache.get_or_render(SourceKind.EXTRACTION, "12345", 3600, render)
    again = await cache.get_or_render(SourceKind.EXTRACTION, "12345", 3600, render)

    assert again == "<rss/>"
    assert render.calls == 1
    assert [path.name for path in tmp_path.iterdir()] == ["bi_12345.xml"]


@pytest.mark.asyncio
async def test_unwritable_cache_still_serves_content(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    cache = FeedCache(tmp_path / "missing")
    render = CountingRender()

    content = await cache.get_or_render(SourceKind.API, "42", 3600, render)

    assert content == "fresh feed"
    assert "cache write failed" in caplog.text


@pytest.mark.asyncio
async def test_unreadable_entry_is_regenerated(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    # A directory in place of the cache file: stat succeeds, read and write fail.
    (tmp_path / "p_42.xml").mkdir()
    cache = FeedCache(tmp_path)
    render = CountingRender()

    content = await cache.get_or_render(SourceKind.API, "42", 3600, render)

    assert content == "fresh feed"
    assert render.calls == 1
    assert "cache read failed" in caplog.text


@pytest.mark.asyncio
async def test_render_failure_propagates_and_writes_nothing(tmp_path: Path) -> None:
    cache = FeedCache(tmp_path)

    async def failing() -> str:
        raise SourceUnavailable("api", "42", "HTTP 503")

    with pytest.raises(SourceUnavailable):
        await cache.get_or_render(SourceKind.API, "42", 3600, failing)
    assert list(tmp_path.iterdir()) == []


def test_cache_filename_uses_kind_prefix() -> None:
    assert cache_filename(SourceKind.API, "42276522") == "p_42276522.xml"
    assert cache_filename(SourceKind.SYNDICATION, "UCmi1257Mo7v4ors9-ekOq1w") == "yt_UCmi1257Mo7v4ors9-ekOq1w.xml"
    assert cache_filename(SourceKind.EXTRACTION, "946974") == "bi_946974.xml"


def test_cache_filename_keeps_unsafe_identifiers_inside_directory() -> None:
    name = cache_filename(SourceKind.API, "../../etc/passwd")
    assert "/" not in name
    assert ".." not in name
    assert name.startswith("p_")
    assert name.endswith(".xml")
    assert cache_filename(SourceKind.API, "a/b") != cache_filename(SourceKind.API, "a b")


@pytest.mark.asyncio
async def test_cached_content_keeps_line_endings(tmp_path: Path) -> None:
    cache = FeedCache(tmp_path)
    content = "\ufeff<rss><![CDATA[line1\r\nline2\rline3]]></rss>"
    render = CountingRender(content)

    first = await cache.get_or_render(SourceKind.API, "42", 3600, render)
    second = await cache.get_or_render(SourceKind.API, "42", 3600, render)

    assert first == content
    assert second == content
    assert render.calls == 1


def test_cache_filename_rejects_trailing_newline() -> None:
    name = cache_filename(SourceKind.API, "42\n")
    assert "\n" not in name
    assert name != "p_42.xml"
