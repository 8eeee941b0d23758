"""Tests for multipart upload encoding."""

from __future__ import annotations

from email.parser import BytesParser
from email.policy import HTTP
from typing import TYPE_CHECKING

import pytest

from specter.api.upload import build_upload

if TYPE_CHECKING:
    from pathlib import Path


def parse_multipart(content_type: str, body: bytes) -> dict[str, tuple[str | None, bytes]]:
    """Return ``{field: (filename, payload)}`` for a multipart body."""
    raw = f"Content-Type: {content_type}\r\n\r\n".encode() + body
    message = BytesParser(policy=HTTP).parsebytes(raw)
    parts = {}
    for part in message.iter_parts():
        name = part.get_param("name", header="content-disposition")
        parts[name] = (part.get_filename(), part.get_payload(decode=True))
    return parts


class TestBuildUpload:
    def test_file_field(self, tmp_path: Path) -> None:
        image = tmp_path / "cover.jpg"
        image.write_bytes(b"jpeg-bytes")

        content_type, body = build_upload(image)

        assert content_type.startswith("multipart/form-data; boundary=")
        parts = parse_multipart(content_type, body)
        assert list(parts) == ["file"]
        assert parts["file"] == ("cover.jpg", b"jpeg-bytes")

    def test_filename_is_base_name(self, tmp_path: Path) -> None:
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        image = nested / "pic.png"
        image.write_bytes(b"png")

        _, body = build_upload(str(image))

        assert b'filename="pic.png"' in body
        assert str(nested).encode() not in body

    def test_ref_field(self, tmp_path: Path) -> None:
        image = tmp_path / "cover.jpg"
        image.write_bytes(b"data")

        content_type, body = build_upload(image, "hero-image")

        parts = parse_multipart(content_type, body)
        assert parts["ref"][1] == b"hero-image"
        assert parts["file"][1] == b"data"

    def test_empty_ref_omitted(self, tmp_path: Path) -> None:
        image = tmp_path / "cover.jpg"
        image.write_bytes(b"data")
        _, body = build_upload(image, "")
        assert b'name="ref"' not in body

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(OSError):
            build_upload(tmp_path / "nope.jpg")
