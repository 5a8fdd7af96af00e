"""creator-rss: RSS feeds for Patreon creators, YouTube channels, and Bilibili users."""

__version__ = "0.1.0"
