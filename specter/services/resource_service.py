"""Admin API resource collections: listing, lookup and mutation."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from specter.api.client import decode_json
from specter.api.pagination import DEFAULT_MAX_PAGES, DEFAULT_PAGE_SIZE, fetch_all, fetch_page
from specter.exceptions import ApiError, NotFoundError, ResponseShapeError, TransportError

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from specter.api.client import AdminClient
    from specter.schemas.payloads import Payload

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Column:
    """A table column: header, item key and maximum display width."""

    header: str
    key: str
    width: int | None = None


@dataclass(frozen=True)
class Resource:
    """A remote collection such as ``posts`` or ``members``."""

    name: str
    singular: str
    columns: tuple[Column, ...]
    lookup_field: str = "slug"

    @property
    def path(self) -> str:
        return f"/{self.name}/"

    def item_path(self, item_id: str) -> str:
        return f"/{self.name}/{item_id}/"


POSTS = Resource(
    "posts",
    "post",
    (
        Column("ID", "id"),
        Column("TITLE", "title", 50),
        Column("STATUS", "status"),
        Column("PUBLISHED", "published_at", 10),
    ),
)
PAGES = Resource("pages", "page", POSTS.columns)
TAGS = Resource(
    "tags",
    "tag",
    (
        Column("ID", "id"),
        Column("NAME", "name", 40),
        Column("SLUG", "slug"),
        Column("VISIBILITY", "visibility"),
    ),
)
MEMBERS = Resource(
    "members",
    "member",
    (
        Column("ID", "id"),
        Column("EMAIL", "email"),
        Column("NAME", "name", 40),
        Column("STATUS", "status"),
    ),
    lookup_field="email",
)
TIERS = Resource(
    "tiers",
    "tier",
    (
        Column("ID", "id"),
        Column("NAME", "name", 40),
        Column("TYPE", "type"),
        Column("ACTIVE", "active"),
        Column("MONTHLY", "monthly_price"),
        Column("YEARLY", "yearly_price"),
    ),
)
NEWSLETTERS = Resource(
    "newsletters",
    "newsletter",
    (
        Column("ID", "id"),
        Column("NAME", "name", 40),
        Column("SLUG", "slug"),
        Column("STATUS", "status"),
    ),
)
USERS = Resource(
    "users",
    "user",
    (
        Column("ID", "id"),
        Column("NAME", "name", 40),
        Column("SLUG", "slug"),
        Column("EMAIL", "email"),
        Column("STATUS", "status"),
    ),
)

RESOURCES: dict[str, Resource] = {
    r.name: r for r in (POSTS, PAGES, TAGS, MEMBERS, TIERS, NEWSLETTERS, USERS)
}


def first_item(data: bytes, resource: Resource) -> dict[str, Any] | None:
    """Return the first element of the ``<resource>`` array, if any."""
    items = decode_json(data).get(resource.name)
    if not isinstance(items, list) or not items:
        return None
    item = items[0]
    if not isinstance(item, dict):
        msg = f"unexpected {resource.singular} entry in response"
        raise ResponseShapeError(msg)
    return item


def _find_by_id(client: AdminClient, resource: Resource, item_id: str) -> dict[str, Any] | None:
    """First lookup step. A failed request counts as "not found by id"."""
    try:
        return first_item(client.get(resource.item_path(item_id)), resource)
    except (ApiError, TransportError, ResponseShapeError) as exc:
        logger.debug("%s %s not found by id: %s", resource.singular, item_id, exc)
        return None


def _find_by_filter(
    client: AdminClient, resource: Resource, identifier: str
) -> dict[str, Any] | None:
    params = {"filter": f"{resource.lookup_field}:{identifier}"}
    return first_item(client.get(resource.path, params), resource)


def lookup(client: AdminClient, resource: Resource, identifier: str) -> dict[str, Any]:
    """Find an item by id, then by slug (or email for members).

    Errors from the second request propagate.
    """
    item = _find_by_id(client, resource, identifier)
    if item is None:
        item = _find_by_filter(client, resource, identifier)
    if item is None:
        msg = f"{resource.singular} not found: {identifier}"
        raise NotFoundError(msg)
    return item


def list_items(
    client: AdminClient,
    resource: Resource,
    limit: int = 15,
    page: int = 1,
    all_pages: bool = False,
    params: Mapping[str, object] | None = None,
    cancelled: Callable[[], bool] | None = None,
    max_pages: int = DEFAULT_MAX_PAGES,
) -> list[Any]:
    """List one page, or every page when ``all_pages`` is set."""
    if all_pages:
        return fetch_all(
            client,
            resource.path,
            resource.name,
            page_size=DEFAULT_PAGE_SIZE,
            params=params,
            cancelled=cancelled,
            max_pages=max_pages,
        )
    return fetch_page(client, resource.path, resource.name, limit, page, params).items


def envelope(resource: Resource, payload: Payload) -> dict[str, list[dict[str, Any]]]:
    return {resource.name: [payload.to_dict()]}


def _single(data: bytes, resource: Resource) -> dict[str, Any]:
    item = first_item(data, resource)
    if item is None:
        msg = f"no {resource.singular} in response"
        raise ResponseShapeError(msg)
    return item


def create(client: AdminClient, resource: Resource, payload: Payload) -> dict[str, Any]:
    return _single(client.post(resource.path, envelope(resource, payload)), resource)


def update(
    client: AdminClient, resource: Resource, item_id: str, payload: Payload
) -> dict[str, Any]:
    """Send a partial update. Raises ValueError when nothing is set."""
    if payload.is_empty():
        msg = "no updates specified"
        raise ValueError(msg)
    data = client.put(resource.item_path(item_id), envelope(resource, payload))
    return _single(data, resource)


def delete(client: AdminClient, resource: Resource, item_id: str) -> None:
    client.delete(resource.item_path(item_id))
