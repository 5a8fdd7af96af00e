from __future__ import annotations

from .cache import FeedCache, cache_filename

__all__ = ["FeedCache", "cache_filename"]
