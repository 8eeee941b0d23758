"""Build post/page payloads from parsed markdown documents and CLI options."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from specter.content.frontmatter import PostFrontmatter
from specter.schemas.payloads import PostPayload, named_refs

if TYPE_CHECKING:
    from specter.content.frontmatter import ParsedContent

DEFAULT_STATUS = "draft"


def _or_none(value: str) -> str | None:
    return value or None


def build_create_payload(
    parsed: ParsedContent,
    status: str | None = None,
    publish_at: str | None = None,
) -> PostPayload:
    """Payload for a new post.

    Status priority: CLI option > front matter > ``draft``.
    Published time priority: CLI option > front matter.
    """
    fm = PostFrontmatter.from_metadata(parsed.metadata)
    return PostPayload(
        title=fm.title,
        html=parsed.html,
        slug=_or_none(fm.slug),
        custom_excerpt=_or_none(fm.excerpt),
        meta_title=_or_none(fm.meta_title),
        meta_description=_or_none(fm.meta_description),
        feature_image=_or_none(fm.feature_image),
        featured=True if fm.featured else None,
        status=status or fm.status or DEFAULT_STATUS,
        published_at=publish_at or fm.published_at or None,
        tags=named_refs(fm.tags),
    )


def build_update_payload(
    existing: dict[str, Any],
    parsed: ParsedContent | None = None,
    status: str | None = None,
    publish_at: str | None = None,
) -> PostPayload:
    """Payload for updating ``existing``.

    ``updated_at`` is echoed back for collision detection. Without a document
    only the CLI options are applied.
    """
    fields: dict[str, Any] = {"updated_at": existing.get("updated_at")}
    if parsed is not None:
        fm = PostFrontmatter.from_metadata(parsed.metadata)
        fields.update(
            title=_or_none(fm.title),
            html=parsed.html,
            slug=_or_none(fm.slug),
            custom_excerpt=_or_none(fm.excerpt),
            meta_title=_or_none(fm.meta_title),
            meta_description=_or_none(fm.meta_description),
            feature_image=_or_none(fm.feature_image),
            featured=fm.featured,
            status=_or_none(fm.status),
            tags=named_refs(fm.tags),
        )
    if status:
        fields["status"] = status
    if publish_at:
        fields["published_at"] = publish_at
    return PostPayload(**fields)
