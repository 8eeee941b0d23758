"""Tests for building post payloads from markdown documents."""

from __future__ import annotations

from specter.content.frontmatter import parse
from specter.services.post_service import build_create_payload, build_update_payload

DOCUMENT = """---
title: Hello
slug: hello
tags: [go, cli]
excerpt: Short summary
status: published
---
Body text
"""


class TestCreatePayload:
    def test_from_frontmatter(self) -> None:
        payload = build_create_payload(parse(DOCUMENT)).to_dict()
        assert payload["title"] == "Hello"
        assert payload["slug"] == "hello"
        assert payload["custom_excerpt"] == "Short summary"
        assert payload["status"] == "published"
        assert payload["tags"] == [{"name": "go"}, {"name": "cli"}]
        assert payload["html"] == "<p>Body text</p>"
        assert "featured" not in payload

    def test_default_status_is_draft(self) -> None:
        payload = build_create_payload(parse("---\ntitle: T\n---\nx\n"))
        assert payload.status == "draft"

    def test_status_flag_wins(self) -> None:
        payload = build_create_payload(parse(DOCUMENT), status="draft")
        assert payload.status == "draft"

    def test_publish_at_flag(self) -> None:
        payload = build_create_payload(
            parse(DOCUMENT), status="scheduled", publish_at="2030-01-02T03:04:05Z"
        )
        assert payload.published_at == "2030-01-02T03:04:05.000Z"

    def test_published_at_from_yaml_date(self) -> None:
        payload = build_create_payload(parse("---\npublished_at: 2030-01-02\n---\n"))
        assert payload.published_at == "2030-01-02T00:00:00.000Z"

    def test_featured(self) -> None:
        payload = build_create_payload(parse("---\nfeatured: true\n---\n"))
        assert payload.to_dict()["featured"] is True


class TestUpdatePayload:
    existing = {"id": "p1", "updated_at": "2024-01-01T00:00:00.000Z"}

    def test_options_only(self) -> None:
        payload = build_update_payload(self.existing, status="published")
        assert payload.to_dict() == {
            "updated_at": "2024-01-01T00:00:00.000Z",
            "status": "published",
        }

    def test_document_fields(self) -> None:
        payload = build_update_payload(self.existing, parse(DOCUMENT)).to_dict()
        assert payload["title"] == "Hello"
        assert payload["featured"] is False
        assert payload["updated_at"] == "2024-01-01T00:00:00.000Z"

    def test_flags_override_document(self) -> None:
        payload = build_update_payload(
            self.existing, parse(DOCUMENT), status="scheduled", publish_at="2030-01-01"
        )
        assert payload.status == "scheduled"
        assert payload.published_at == "2030-01-01T00:00:00.000Z"
