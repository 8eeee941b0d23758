"""Cursor-based pagination over Admin API listings."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from specter.api.client import decode_json
from specter.exceptions import OperationCancelledError, PaginationError, ResponseShapeError

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from specter.api.client import AdminClient

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 100
DEFAULT_MAX_PAGES = 10_000


@dataclass
class Page:
    """One fetched page plus the cursor of the next one (0 = no more pages)."""

    items: list[Any] = field(default_factory=list)
    next_cursor: int = 0

    @classmethod
    def from_response(cls, data: bytes | Mapping[str, Any], resource: str) -> Page:
        """Decode a ``{"<resource>": [...], "meta": {"pagination": {...}}}`` envelope."""
        envelope = decode_json(data) if isinstance(data, bytes) else data
        items = envelope.get(resource)
        if items is None:
            items = []
        if not isinstance(items, list):
            msg = f"expected a list under {resource!r}"
            raise ResponseShapeError(msg)

        meta = envelope.get("meta") or {}
        pagination = (meta.get("pagination") or {}) if isinstance(meta, dict) else {}
        raw_next = pagination.get("next") if isinstance(pagination, dict) else None
        if raw_next is None:
            next_cursor = 0
        elif isinstance(raw_next, int) and not isinstance(raw_next, bool):
            next_cursor = raw_next
        else:
            msg = f"invalid pagination cursor: {raw_next!r}"
            raise ResponseShapeError(msg)
        return cls(items=items, next_cursor=next_cursor)


def fetch_page(
    client: AdminClient,
    path: str,
    resource: str,
    limit: int,
    page: int = 1,
    params: Mapping[str, object] | None = None,
) -> Page:
    """Fetch a single listing page."""
    query: dict[str, object] = dict(params or {})
    query["limit"] = limit
    query["page"] = page
    logger.debug("Fetching %s page %d (limit=%d)", path, page, limit)
    return Page.from_response(client.get(path, query), resource)


def fetch_all(
    client: AdminClient,
    path: str,
    resource: str,
    page_size: int = DEFAULT_PAGE_SIZE,
    params: Mapping[str, object] | None = None,
    cancelled: Callable[[], bool] | None = None,
    max_pages: int = DEFAULT_MAX_PAGES,
) -> list[Any]:
    """Follow ``next`` cursors from page 1 and return every item in arrival order.

    Pages are fetched one at a time. Any pipeline failure aborts the walk.
    ``cancelled`` is checked before each page. A repeated cursor, or more than
    ``max_pages`` pages, raises ``PaginationError``.
    """
    results: list[Any] = []
    cursor = 1
    visited: set[int] = set()
    while True:
        if cancelled is not None and cancelled():
            msg = f"listing {path} cancelled after {len(visited)} page(s)"
            raise OperationCancelledError(msg)
        if len(visited) >= max_pages:
            msg = f"listing {path} exceeded {max_pages} pages"
            raise PaginationError(msg)
        visited.add(cursor)

        page = fetch_page(client, path, resource, page_size, cursor, params)
        results.extend(page.items)
        if page.next_cursor == 0:
            return results
        if page.next_cursor in visited:
            msg = f"listing {path} revisited page {page.next_cursor}"
            raise PaginationError(msg)
        cursor = page.next_cursor
