from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Generic, Mapping, Protocol, Sequence, TypeVar

import httpx

from creator_rss.errors import SourceUnavailable
from creator_rss.models import NormalizedFeed, SourceKind, SourceProfile

LOGGER = logging.getLogger(__name__)
USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 14_5) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/125.0.0.0 Safari/537.36"
)
BASE_HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}
DEFAULT_TIMEOUT = 30.0

RawT = TypeVar("RawT")
QueryParams = Sequence[tuple[str, str]]


class SourceAdapter(Protocol):
    """Turns one upstream source into a NormalizedFeed."""

    profile: SourceProfile

    async def fetch_raw(self, identifier: str) -> Any:
        ...

    def normalize(self, raw: Any) -> NormalizedFeed:
        ...

    async def build_feed(self, identifier: str) -> NormalizedFeed:
        ...


class BaseAdapter(Generic[RawT]):
    profile: SourceProfile

    def __init__(self, *, now: datetime | None = None):
        self._now = now

    @property
    def kind(self) -> SourceKind:
        return self.profile.kind

    async def fetch_raw(self, identifier: str) -> RawT:
        raise NotImplementedError

    def normalize(self, raw: RawT) -> NormalizedFeed:
        raise NotImplementedError

    async def build_feed(self, identifier: str) -> NormalizedFeed:
        raw = await self.fetch_raw(identifier)
        return self.normalize(raw)

    def _unavailable(self, identifier: str, reason: str) -> SourceUnavailable:
        return SourceUnavailable(self.kind.value, identifier, reason)


class HttpAdapter(BaseAdapter[RawT]):
    """Adapter whose raw payload comes from a single HTTP GET."""

    def __init__(
        self,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        headers: Mapping[str, str] | None = None,
        now: datetime | None = None,
    ):
        super().__init__(now=now)
        self._client = client
        self._timeout = timeout
        self._headers = dict(headers) if headers else dict(BASE_HEADERS)

    async def _get(self, url: str, identifier: str, *, params: QueryParams | None = None) -> httpx.Response:
        LOGGER.info("Fetching %s feed for %s", self.profile.site_name, identifier)
        try:
            if self._client is not None:
                response = await self._client.get(
                    url, params=params, headers=self._headers, timeout=self._timeout
                )
            else:
                async with httpx.AsyncClient(
                    timeout=self._timeout, headers=self._headers, follow_redirects=True
                ) as client:
                    response = await client.get(url, params=params)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            LOGGER.error("%s request for %s failed: %s", self.profile.site_name, identifier, exc)
            raise self._unavailable(identifier, str(exc) or type(exc).__name__) from exc
        return response
