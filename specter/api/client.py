"""Authenticated request pipeline for the Ghost Admin API."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any, Final
from urllib.parse import urlencode

import httpx

from specter.api.auth import issue_token
from specter.api.upload import build_upload
from specter.exceptions import ApiError, ApiErrorItem, ResponseShapeError, TransportError
from specter.services.datetime_service import now_utc

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping
    from datetime import datetime
    from pathlib import Path

    from specter.config import Endpoint

logger = logging.getLogger(__name__)

API_ROOT: Final = "/ghost/api/admin"
AUTH_SCHEME: Final = "Ghost"
ACCEPT_VERSION: Final = "v5.0"
UPLOAD_PATH: Final = "/images/upload/"
METHODS: Final[frozenset[str]] = frozenset({"GET", "POST", "PUT", "DELETE"})


def decode_api_error(status_code: int, body: bytes) -> ApiError | None:
    """Decode an ``{"errors": [...]}`` envelope; None if it is not one."""
    try:
        data = json.loads(body)
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None
    raw_items = data.get("errors")
    if not isinstance(raw_items, list):
        return None
    items = [
        ApiErrorItem(
            message=str(raw.get("message") or ""),
            context=str(raw["context"]) if raw.get("context") else None,
            type=str(raw["type"]) if raw.get("type") else None,
        )
        for raw in raw_items
        if isinstance(raw, dict)
    ]
    if not items:
        return None
    return ApiError(status_code, items)


def classify_response(response: httpx.Response) -> bytes:
    """Return the raw body of a successful response or raise the mapped error."""
    if response.status_code < 400:
        return response.content
    api_error = decode_api_error(response.status_code, response.content)
    if api_error is not None:
        raise api_error
    body = response.text
    msg = f"API error: {body} (status {response.status_code})"
    raise TransportError(msg, status_code=response.status_code, body=body)


def decode_json(data: bytes) -> dict[str, Any]:
    """Decode a JSON object response body."""
    try:
        result = json.loads(data)
    except ValueError as exc:
        msg = f"parsing response: {exc}"
        raise ResponseShapeError(msg) from exc
    if not isinstance(result, dict):
        msg = "parsing response: expected a JSON object"
        raise ResponseShapeError(msg)
    return result


def with_query(path: str, params: Mapping[str, object] | None) -> str:
    """Append URL-encoded ``params`` to ``path`` when there are any.

    ``None`` values are dropped; keys are sorted so URLs are stable.
    """
    if not params:
        return path
    pairs = sorted((k, str(v)) for k, v in params.items() if v is not None)
    if not pairs:
        return path
    return f"{path}?{urlencode(pairs)}"


class AdminClient:
    """Client for the Ghost Admin API.

    Every call issues a fresh token and performs exactly one network attempt.
    """

    def __init__(
        self,
        endpoint: Endpoint,
        http_client: httpx.Client | None = None,
        clock: Callable[[], datetime] = now_utc,
    ) -> None:
        self.endpoint = endpoint
        self._owns_client = http_client is None
        self.client = http_client or httpx.Client(
            timeout=endpoint.timeout, follow_redirects=True
        )
        self._clock = clock

    def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            self.client.close()

    def __enter__(self) -> AdminClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def api_url(self, path: str) -> str:
        return f"{self.endpoint.base_url}{API_ROOT}{path}"

    def _headers(self, content_type: str | None = None) -> dict[str, str]:
        token = issue_token(self.endpoint.api_key, self._clock())
        headers = {
            "Authorization": f"{AUTH_SCHEME} {token}",
            "Accept-Version": ACCEPT_VERSION,
        }
        if content_type is not None:
            headers["Content-Type"] = content_type
        return headers

    def _send(
        self,
        method: str,
        path: str,
        content: bytes | None = None,
        content_type: str | None = None,
    ) -> bytes:
        headers = self._headers(content_type)
        try:
            response = self.client.request(
                method, self.api_url(path), content=content, headers=headers
            )
        except httpx.HTTPError as exc:
            msg = f"request failed: {exc}"
            raise TransportError(msg) from exc
        logger.debug("%s %s -> %d", method, path, response.status_code)
        return classify_response(response)

    def execute(self, method: str, path: str, body: object | None = None) -> bytes:
        """Send one request and return the raw response body.

        ``body`` is serialized to JSON when given.
        """
        if method not in METHODS:
            msg = f"unsupported method: {method}"
            raise ValueError(msg)
        if body is None:
            return self._send(method, path)
        payload = json.dumps(body).encode("utf-8")
        return self._send(method, path, payload, "application/json")

    def get(self, path: str, params: Mapping[str, object] | None = None) -> bytes:
        return self.execute("GET", with_query(path, params))

    def post(self, path: str, body: object) -> bytes:
        return self.execute("POST", path, body)

    def put(self, path: str, body: object) -> bytes:
        return self.execute("PUT", path, body)

    def delete(self, path: str) -> bytes:
        return self.execute("DELETE", path)

    def upload_image(self, file_path: str | Path, ref: str | None = None) -> str:
        """Upload an image and return its public URL."""
        content_type, body = build_upload(file_path, ref)
        data = decode_json(self._send("POST", UPLOAD_PATH, body, content_type))
        images = data.get("images")
        url = None
        if isinstance(images, list) and images and isinstance(images[0], dict):
            url = images[0].get("url")
        if not url:
            msg = "no image URL in response"
            raise ResponseShapeError(msg)
        return str(url)
