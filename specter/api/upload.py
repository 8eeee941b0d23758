"""Multipart body encoding for image uploads."""

from __future__ import annotations

from pathlib import Path

import httpx

UPLOAD_FILE_FIELD = "file"
UPLOAD_REF_FIELD = "ref"

# Only used to drive httpx's multipart encoder; never requested.
_ENCODER_URL = "http://upload.invalid/"


def build_upload(file_path: str | Path, ref_name: str | None = None) -> tuple[str, bytes]:
    """Build a multipart/form-data body for ``file_path``.

    Returns ``(content_type, body)``. The content type carries the boundary.
    The file is read fully into memory (the API expects a single part).
    ``ref_name`` is added as an extra text field only when non-empty.
    Raises ``OSError`` when the file cannot be read.
    """
    path = Path(file_path)
    content = path.read_bytes()

    data = {UPLOAD_REF_FIELD: ref_name} if ref_name else None
    request = httpx.Request(
        "POST",
        _ENCODER_URL,
        files={UPLOAD_FILE_FIELD: (path.name, content)},
        data=data,
    )
    body = request.read()
    return request.headers["Content-Type"], body
