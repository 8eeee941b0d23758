"""YAML front matter parser for markdown posts and pages."""

from __future__ import annotations

import enum
import sys
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any

import frontmatter
import yaml

from specter.content.renderer import render_markdown
from specter.exceptions import BadMetadataError, ParseError, UnterminatedFrontmatterError

DELIMITER = "---"

RECOGNIZED_FIELDS: frozenset[str] = frozenset(
    {
        "title",
        "slug",
        "tags",
        "featured",
        "status",
        "excerpt",
        "meta_title",
        "meta_description",
        "feature_image",
        "published_at",
    }
)

_YAML = frontmatter.YAMLHandler()
_MERGE_TAG = "tag:yaml.org,2002:merge"


class _UniqueKeyLoader(yaml.SafeLoader):
    """Safe loader that rejects repeated mapping keys."""

    def construct_mapping(self, node: yaml.MappingNode, deep: bool = False) -> dict[Any, Any]:
        seen: set[Any] = set()
        for key_node, _ in node.value:
            if not isinstance(key_node, yaml.ScalarNode) or key_node.tag == _MERGE_TAG:
                continue
            key = self.construct_object(key_node, deep=deep)
            if key in seen:
                raise yaml.constructor.ConstructorError(
                    "while constructing a mapping",
                    node.start_mark,
                    f"mapping key {key!r} already defined",
                    key_node.start_mark,
                )
            seen.add(key)
        return super().construct_mapping(node, deep=deep)


class _State(enum.Enum):
    START = "start"
    METADATA = "metadata"
    BODY = "body"


@dataclass
class ParsedContent:
    """A document split into metadata, markdown body and rendered HTML."""

    metadata: dict[str, Any] = field(default_factory=dict)
    body: str = ""
    html: str = ""


@dataclass(frozen=True)
class PostFrontmatter:
    """Typed view of the recognized post/page front matter fields."""

    title: str = ""
    slug: str = ""
    tags: tuple[str, ...] = ()
    featured: bool = False
    status: str = ""
    excerpt: str = ""
    meta_title: str = ""
    meta_description: str = ""
    feature_image: str = ""
    published_at: str | date | datetime = ""

    @classmethod
    def from_metadata(cls, metadata: dict[str, Any]) -> PostFrontmatter:
        """Build from decoded metadata; unknown keys are ignored."""

        def text(key: str) -> str:
            value = metadata.get(key)
            return "" if value is None else str(value).strip()

        raw_tags = metadata.get("tags")
        if raw_tags is None:
            tags: tuple[str, ...] = ()
        elif isinstance(raw_tags, list):
            tags = tuple(str(t).strip() for t in raw_tags if str(t).strip())
        else:
            msg = "tags must be a list"
            raise BadMetadataError(msg)

        published = metadata.get("published_at")
        if not isinstance(published, (date, datetime)):
            published = text("published_at")

        return cls(
            title=text("title"),
            slug=text("slug"),
            tags=tags,
            featured=bool(metadata.get("featured", False)),
            status=text("status"),
            excerpt=text("excerpt"),
            meta_title=text("meta_title"),
            meta_description=text("meta_description"),
            feature_image=text("feature_image"),
            published_at=published,
        )


def _split_lines(text: str) -> list[str]:
    """Split on newlines, dropping a trailing CR from each line."""
    if not text:
        return []
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line.removesuffix("\r") for line in lines]


def _decode_metadata(block: str) -> dict[str, Any]:
    try:
        data = _YAML.load(block, Loader=_UniqueKeyLoader)
    except yaml.YAMLError as exc:
        msg = f"parsing frontmatter: {exc}"
        raise BadMetadataError(msg) from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        msg = f"parsing frontmatter: expected a mapping, got {type(data).__name__}"
        raise BadMetadataError(msg)
    return {str(k): v for k, v in data.items()}


def split_document(text: str) -> tuple[str | None, str]:
    """Split text into (metadata block or None, body).

    A first line equal to ``---`` (ignoring surrounding whitespace) opens the
    metadata block, which runs until the next such line. Everything after is
    body, where ``---`` lines are ordinary text. Each body line is re-emitted
    with a trailing newline.
    """
    state = _State.START
    has_metadata = False
    metadata_lines: list[str] = []
    body_lines: list[str] = []

    for line in _split_lines(text):
        if state is _State.START:
            if line.strip() == DELIMITER:
                has_metadata = True
                state = _State.METADATA
            else:
                body_lines.append(line)
                state = _State.BODY
        elif state is _State.METADATA:
            if line.strip() == DELIMITER:
                state = _State.BODY
            else:
                metadata_lines.append(line)
        else:
            body_lines.append(line)

    if state is _State.METADATA:
        msg = "frontmatter block is not terminated by '---'"
        raise UnterminatedFrontmatterError(msg)

    block = "".join(f"{ln}\n" for ln in metadata_lines) if has_metadata else None
    return block, "".join(f"{ln}\n" for ln in body_lines)


def parse(raw: bytes | str) -> ParsedContent:
    """Parse a markdown document with optional YAML front matter."""
    if isinstance(raw, bytes):
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            msg = f"reading input: {exc}"
            raise ParseError(msg) from exc
    else:
        text = raw

    block, body = split_document(text)
    metadata = _decode_metadata(block) if block is not None else {}
    return ParsedContent(metadata=metadata, body=body, html=render_markdown(body))


def parse_file(path: str | Path) -> ParsedContent:
    """Parse a file, or standard input when ``path`` is ``-``.

    Raises OSError when the file cannot be read.
    """
    if str(path) == "-":
        return parse(sys.stdin.buffer.read())
    return parse(Path(path).read_bytes())
