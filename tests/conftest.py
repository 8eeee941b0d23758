"""Shared test fixtures for the Admin API client."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

import httpx
import pytest

from specter.api.client import AdminClient
from specter.config import Endpoint

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

TEST_API_KEY = "abc123:deadbeef"
TEST_BASE_URL = "https://blog.example.com"
FIXED_NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


@dataclass
class StubServer:
    """Records requests and answers them from a handler function."""

    handler: Callable[[httpx.Request], httpx.Response]
    requests: list[httpx.Request] = field(default_factory=list)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        request.read()
        self.requests.append(request)
        return self.handler(request)

    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]


def json_response(data: object, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, content=json.dumps(data).encode("utf-8"))


def make_client(
    handler: Callable[[httpx.Request], httpx.Response],
    endpoint: Endpoint | None = None,
) -> tuple[AdminClient, StubServer]:
    """Build an AdminClient whose HTTP traffic goes to a stub server."""
    server = StubServer(handler)
    http_client = httpx.Client(transport=httpx.MockTransport(server), follow_redirects=True)
    client = AdminClient(
        endpoint or Endpoint(base_url=TEST_BASE_URL, api_key=TEST_API_KEY),
        http_client=http_client,
        clock=lambda: FIXED_NOW,
    )
    return client, server


@pytest.fixture
def endpoint() -> Endpoint:
    return Endpoint(base_url=TEST_BASE_URL, api_key=TEST_API_KEY)


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Remove GHOST_* variables so tests see only what they set."""
    for name in ("GHOST_URL", "GHOST_ADMIN_KEY", "GHOST_PROFILE", "GHOST_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)
    yield

