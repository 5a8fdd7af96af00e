from __future__ import annotations

import hashlib
import logging
import re
import time
from pathlib import Path
from typing import Awaitable, Callable

from slugify import slugify

from creator_rss.errors import CacheIoError
from creator_rss.models import PROFILES, SourceKind

LOGGER = logging.getLogger(__name__)
_SAFE_IDENTIFIER_RE = re.compile(r"[A-Za-z0-9_-]+")

RenderFn = Callable[[], Awaitable[str]]


class FeedCache:
    """Read-through cache of rendered feeds, one file per source kind + identifier.

    Cache I/O failures never fail a request: they are logged and the feed is
    rendered uncached. There is no locking; concurrent misses for the same key
    each render and each overwrite the file (last writer wins), and a reader
    may observe a partially written file.
    """

    def __init__(self, cache_dir: Path, *, clock: Callable[[], float] = time.time):
        self._cache_dir = cache_dir
        self._clock = clock

    @property
    def cache_dir(self) -> Path:
        return self._cache_dir

    async def get_or_render(
        self,
        kind: SourceKind,
        identifier: str,
        max_age_seconds: float,
        render: RenderFn,
    ) -> str:
        path = self.path_for(kind, identifier)
        cached = self._read_fresh(path, max_age_seconds)
        if cached is not None:
            LOGGER.debug("Cache hit for %s", path.name)
            return cached

        content = await render()
        try:
            self._write(path, content)
        except CacheIoError as exc:
            LOGGER.warning("%s; serving uncached", exc)
        return content

    def path_for(self, kind: SourceKind, identifier: str) -> Path:
        return self._cache_dir / cache_filename(kind, identifier)

    def _read_fresh(self, path: Path, max_age_seconds: float) -> str | None:
        try:
            modified = path.stat().st_mtime
        except FileNotFoundError:
            return None
        except OSError as exc:
            LOGGER.warning("%s", CacheIoError(path, "stat", exc))
            return None

        age = self._clock() - modified
        if age >= max_age_seconds:
            LOGGER.debug("Cache entry %s is stale (%.0fs old)", path.name, age)
            return None
        # Bytes, not text mode: "\r\n" inside CDATA must come back unchanged.
        try:
            return path.read_bytes().decode("utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            cause = exc if isinstance(exc, OSError) else OSError(str(exc))
            LOGGER.warning("%s; regenerating", CacheIoError(path, "read", cause))
            return None

    def _write(self, path: Path, content: str) -> None:
        try:
            path.write_bytes(content.encode("utf-8"))
        except OSError as exc:
            raise CacheIoError(path, "write", exc) from exc


def cache_filename(kind: SourceKind, identifier: str) -> str:
    """Deterministic file name; unsafe identifiers get a digest suffix so keys stay distinct."""
    prefix = PROFILES[kind].cache_prefix
    if _SAFE_IDENTIFIER_RE.fullmatch(identifier):
        return f"{prefix}{identifier}.xml"
    safe = slugify(identifier, lowercase=False, separator="-") or "feed"
    digest = hashlib.sha256(identifier.encode("utf-8", "ignore")).hexdigest()[:12]
    return f"{prefix}{safe}-{digest}.xml"
