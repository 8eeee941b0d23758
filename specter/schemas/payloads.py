"""Request payload schemas for Admin API resources.

Each payload only serializes the fields that were set.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from specter.services.datetime_service import normalize_publish_at


class NamedRef(BaseModel):
    """Reference to a tag or label by name."""

    name: str = Field(min_length=1)


class Payload(BaseModel):
    model_config = ConfigDict(extra="forbid")

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)

    def is_empty(self) -> bool:
        return not self.to_dict()


def named_refs(names: list[str] | tuple[str, ...] | None) -> list[NamedRef] | None:
    """Turn a list of names into ``[{"name": ...}]`` refs; None when empty."""
    if not names:
        return None
    return [NamedRef(name=name) for name in names]


class PostPayload(Payload):
    """Post or page fields."""

    title: str | None = None
    html: str | None = None
    slug: str | None = None
    custom_excerpt: str | None = None
    meta_title: str | None = None
    meta_description: str | None = None
    feature_image: str | None = None
    featured: bool | None = None
    status: Literal["draft", "published", "scheduled"] | None = None
    published_at: str | None = None
    tags: list[NamedRef] | None = None
    updated_at: str | None = None

    @field_validator("published_at", mode="before")
    @classmethod
    def normalize_published_at(cls, v: object) -> object:
        if v is None or v == "":
            return None
        return normalize_publish_at(v)  # type: ignore[arg-type]


class TagPayload(Payload):
    name: str | None = Field(default=None, min_length=1)
    slug: str | None = None
    description: str | None = None
    feature_image: str | None = None
    visibility: Literal["public", "internal"] | None = None
    meta_title: str | None = None
    meta_description: str | None = None


class MemberPayload(Payload):
    email: str | None = Field(default=None, pattern=r"^[^@\s]+@[^@\s]+$")
    name: str | None = None
    note: str | None = None
    labels: list[NamedRef] | None = None


class TierPayload(Payload):
    name: str | None = Field(default=None, min_length=1)
    slug: str | None = None
    description: str | None = None
    monthly_price: int | None = Field(default=None, ge=0)
    yearly_price: int | None = Field(default=None, ge=0)
    currency: str | None = Field(default=None, pattern=r"^[a-zA-Z]{3}$")
    visibility: Literal["public", "none"] | None = None
    trial_days: int | None = Field(default=None, ge=0)
    active: bool | None = None
    welcome_page_url: str | None = None

    @field_validator("currency")
    @classmethod
    def lower_currency(cls, v: str | None) -> str | None:
        return v.lower() if v else v


class NewsletterPayload(Payload):
    name: str | None = Field(default=None, min_length=1)
    slug: str | None = None
    description: str | None = None
    sender_name: str | None = None
    sender_email: str | None = None
    sender_reply_to: str | None = None
    status: Literal["active", "archived"] | None = None
    subscribe_on_signup: bool | None = None
    title_font_category: Literal["serif", "sans_serif"] | None = None
    body_font_category: Literal["serif", "sans_serif"] | None = None
    show_header_icon: bool | None = None
    show_header_title: bool | None = None
    show_header_name: bool | None = None
