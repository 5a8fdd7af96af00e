from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError

from creator_rss.models import PATREON_PROFILE, Campaign, Channel, NormalizedFeed, Post
from creator_rss.normalizer import absolute_url, repair_url, resolve_timestamp
from creator_rss.sources.base import HttpAdapter

LOGGER = logging.getLogger(__name__)
PATREON_STREAM_URL = "https://api.patreon.com/stream"
PATREON_BASE_URL = "https://www.patreon.com"

# Only what the feed renders is requested.
REQUESTED_FIELDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("post", ("post_type", "title", "content", "published_at", "url", "teaser_text", "image")),
    ("user", ("image_url", "full_name", "url")),
)

M = TypeVar("M", bound=BaseModel)


@dataclass(frozen=True)
class ApiQuery:
    """Query parameters for one creator's stream; built per request, never mutated."""

    creator_id: str
    fields: tuple[tuple[str, tuple[str, ...]], ...] = REQUESTED_FIELDS

    @property
    def filters(self) -> tuple[tuple[str, bool | str], ...]:
        return (
            ("is_by_creator", True),
            ("is_following", False),
            ("creator_id", self.creator_id),
            ("contains_exclusive_posts", True),
        )

    def params(self) -> list[tuple[str, str]]:
        params = [("json-api-version", "1.0")]
        for entity, names in self.fields:
            params.append((f"fields[{entity}]", ",".join(names)))
        for key, value in self.filters:
            params.append((f"filter[{key}]", _param_value(value)))
        params.append(("page[cursor]", "null"))
        return params


class ImageAttributes(BaseModel):
    thumb_image_url: str | None = None
    thumb_url: str | None = None
    large_url: str | None = None
    url: str | None = None

    model_config = ConfigDict(extra="ignore")

    def best_url(self) -> str:
        return self.thumb_image_url or self.thumb_url or self.large_url or self.url or ""


class PostAttributes(BaseModel):
    post_type: str | None = None
    title: str | None = None
    content: str | None = None
    published_at: str | None = None
    url: str | None = None
    teaser_text: str | None = None
    image: ImageAttributes | None = None

    model_config = ConfigDict(extra="ignore")


class UserAttributes(BaseModel):
    full_name: str | None = None
    url: str | None = None
    image_url: str | None = None

    model_config = ConfigDict(extra="ignore")


class CampaignAttributes(BaseModel):
    summary: str | None = None

    model_config = ConfigDict(extra="ignore")


class ApiResource(BaseModel):
    id: str | int | None = None
    type: str | None = None
    attributes: dict[str, Any] | None = None
    relationships: dict[str, Any] | None = None

    model_config = ConfigDict(extra="ignore")

    def related_id(self, name: str) -> str | None:
        relation = (self.relationships or {}).get(name)
        if not isinstance(relation, dict):
            return None
        data = relation.get("data")
        if isinstance(data, dict) and data.get("id") is not None:
            return str(data["id"])
        return None


class ApiDocument(BaseModel):
    data: list[ApiResource] = []
    included: list[ApiResource] = []

    model_config = ConfigDict(extra="ignore")


@dataclass(frozen=True)
class ApiPayload:
    posts: tuple[PostAttributes, ...]
    user: UserAttributes | None
    campaign: CampaignAttributes | None


class PatreonAdapter(HttpAdapter[ApiPayload]):
    """Creator posts from the Patreon stream API."""

    profile = PATREON_PROFILE

    def build_query(self, identifier: str) -> ApiQuery:
        return ApiQuery(creator_id=identifier)

    async def fetch_raw(self, identifier: str) -> ApiPayload:
        query = self.build_query(identifier)
        response = await self._get(PATREON_STREAM_URL, identifier, params=query.params())
        try:
            document = ApiDocument.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            LOGGER.error("Patreon returned an unusable document for %s: %s", identifier, exc)
            raise self._unavailable(identifier, "unparseable JSON:API document") from exc
        return parse_api_document(document)

    def normalize(self, raw: ApiPayload) -> NormalizedFeed:
        user = raw.user or UserAttributes()
        name = (user.full_name or "").strip() or self.profile.unknown_name
        summary = (raw.campaign.summary if raw.campaign else None) or f"Posts from Patreon creator {name}"
        channel = Channel(
            display_name=name,
            home_url=absolute_url(user.url, base=PATREON_BASE_URL),
            image_url=repair_url(user.image_url),
        )
        posts = tuple(self._normalize_post(attributes) for attributes in raw.posts)
        return NormalizedFeed(channel=channel, campaign=Campaign(summary=summary), posts=posts)

    def _normalize_post(self, attributes: PostAttributes) -> Post:
        image = attributes.image or ImageAttributes()
        return Post(
            title=attributes.title or "",
            url=absolute_url(attributes.url, base=PATREON_BASE_URL),
            published_at=resolve_timestamp(attributes.published_at, self._now),
            body_html=attributes.content or "",
            teaser_text=attributes.teaser_text or "",
            thumbnail_url=absolute_url(image.best_url(), base=PATREON_BASE_URL),
        )


def parse_api_document(document: ApiDocument) -> ApiPayload:
    """Split a stream document into posts plus the creator's user and campaign records."""
    posts: list[PostAttributes] = []
    for resource in document.data:
        if resource.type not in (None, "post"):
            continue
        attributes = _validate(PostAttributes, resource)
        if attributes is not None:
            posts.append(attributes)

    users: dict[str, UserAttributes] = {}
    last_user: UserAttributes | None = None
    campaign: CampaignAttributes | None = None
    creator_id: str | None = None
    for resource in document.included:
        if resource.type == "user":
            user = _validate(UserAttributes, resource)
            if user is None:
                continue
            last_user = user
            if resource.id is not None:
                users[str(resource.id)] = user
        elif resource.type == "campaign":
            parsed = _validate(CampaignAttributes, resource)
            if parsed is not None:
                campaign = parsed
                creator_id = resource.related_id("creator")

    user = users.get(creator_id) if creator_id else None
    return ApiPayload(posts=tuple(posts), user=user or last_user, campaign=campaign)


def _validate(model: type[M], resource: ApiResource) -> M | None:
    try:
        return model.model_validate(resource.attributes or {})
    except ValidationError as exc:
        LOGGER.warning("Skipping malformed %s record %s: %s", resource.type, resource.id, exc)
        return None


def _param_value(value: bool | str) -> str:
    if value is True:
        return "true"
    if value is False:
        return "false"
    return str(value)
