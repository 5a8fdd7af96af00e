"""Source adapters: one per upstream, each producing a NormalizedFeed."""

from __future__ import annotations

from .base import SourceAdapter
from .bilibili import BilibiliAdapter
from .patreon import PatreonAdapter
from .registry import build_adapter
from .youtube import YouTubeAdapter

__all__ = ["SourceAdapter", "BilibiliAdapter", "PatreonAdapter", "YouTubeAdapter", "build_adapter"]
