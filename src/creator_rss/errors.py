from __future__ import annotations

from pathlib import Path


class CreatorRssError(Exception):
    """Base class for errors raised by creator-rss."""


class SourceUnavailable(CreatorRssError):
    """Raised when an upstream source cannot be fetched or parsed."""

    def __init__(self, kind: str, identifier: str, reason: str):
        super().__init__(f"{kind} source {identifier!r} unavailable: {reason}")
        self.kind = kind
        self.identifier = identifier
        self.reason = reason


class CacheIoError(CreatorRssError):
    """Wraps a failed read or write against a cache file. Never surfaced to callers."""

    def __init__(self, path: Path, operation: str, cause: OSError):
        super().__init__(f"cache {operation} failed for {path}: {cause}")
        self.path = path
        self.operation = operation
        self.cause = cause


class MalformedField(CreatorRssError):
    """A field was present but could not be interpreted."""

    def __init__(self, field: str, value: object):
        super().__init__(f"malformed {field}: {value!r}")
        self.field = field
        self.value = value
