"""Tests for the authenticated request pipeline."""

from __future__ import annotations

import json

import httpx
import pytest
from jose import jwt

from specter.api.client import (
    ACCEPT_VERSION,
    AdminClient,
    classify_response,
    decode_json,
    with_query,
)
from specter.config import Endpoint
from specter.exceptions import (
    ApiError,
    BadKeyFormatError,
    ResponseShapeError,
    TransportError,
)
from tests.conftest import TEST_BASE_URL, json_response, make_client


class TestRequestShape:
    def test_url_and_headers(self) -> None:
        client, server = make_client(lambda r: json_response({"posts": []}))
        client.get("/posts/")

        request = server.requests[0]
        assert request.method == "GET"
        assert str(request.url) == f"{TEST_BASE_URL}/ghost/api/admin/posts/"
        assert request.headers["Accept-Version"] == ACCEPT_VERSION
        scheme, token = request.headers["Authorization"].split(" ", 1)
        assert scheme == "Ghost"
        assert jwt.get_unverified_header(token)["kid"] == "abc123"
        assert "Content-Type" not in request.headers

    def test_json_body(self) -> None:
        client, server = make_client(lambda r: json_response({"tags": [{"id": "1"}]}))
        client.post("/tags/", {"tags": [{"name": "News"}]})

        request = server.requests[0]
        assert request.method == "POST"
        assert request.headers["Content-Type"] == "application/json"
        assert json.loads(request.content) == {"tags": [{"name": "News"}]}

    def test_query_string(self) -> None:
        client, server = make_client(lambda r: json_response({"members": []}))
        client.get("/members/", {"filter": "email:a@b.co", "limit": 5})

        assert server.requests[0].url.params["filter"] == "email:a@b.co"
        assert server.requests[0].url.params["limit"] == "5"

    def test_trailing_slash_on_base_url(self) -> None:
        endpoint = Endpoint(base_url=TEST_BASE_URL + "/", api_key="abc123:deadbeef")
        client, server = make_client(lambda r: json_response({}), endpoint)
        client.delete("/posts/1/")
        assert server.paths() == ["/ghost/api/admin/posts/1/"]

    def test_fresh_token_per_request(self) -> None:
        client, server = make_client(lambda r: json_response({}))
        client.get("/site/")
        client.get("/site/")
        assert len(server.requests) == 2

    def test_returns_raw_bytes(self) -> None:
        raw = b'{"site": {"title": "Blog"}}'
        client, _ = make_client(lambda r: httpx.Response(200, content=raw))
        assert client.get("/site/") == raw

    def test_rejects_unknown_method(self) -> None:
        client, server = make_client(lambda r: json_response({}))
        with pytest.raises(ValueError, match="unsupported method"):
            client.execute("PATCH", "/posts/")
        assert server.requests == []

    def test_bad_key_fails_before_network(self) -> None:
        endpoint = Endpoint(base_url=TEST_BASE_URL, api_key="nocolon")
        client, server = make_client(lambda r: json_response({}), endpoint)
        with pytest.raises(BadKeyFormatError):
            client.get("/site/")
        assert server.requests == []


class TestErrorMapping:
    def test_structured_error(self) -> None:
        body = {"errors": [{"message": "Not found"}]}
        client, _ = make_client(lambda r: json_response(body, 404))
        with pytest.raises(ApiError) as exc_info:
            client.get("/posts/x/")
        assert exc_info.value.message == "Not found"
        assert exc_info.value.status_code == 404
        assert str(exc_info.value) == "Not found"

    def test_structured_error_with_context(self) -> None:
        body = {
            "errors": [
                {
                    "message": "Validation error",
                    "context": "Title is required",
                    "type": "ValidationError",
                }
            ]
        }
        client, _ = make_client(lambda r: json_response(body, 422))
        with pytest.raises(ApiError) as exc_info:
            client.post("/posts/", {"posts": [{}]})
        assert str(exc_info.value) == "Validation error: Title is required"
        assert exc_info.value.items[0].type == "ValidationError"

    def test_non_json_error_body(self) -> None:
        client, _ = make_client(lambda r: httpx.Response(500, text="Internal Server Error"))
        with pytest.raises(TransportError) as exc_info:
            client.get("/site/")
        assert exc_info.value.status_code == 500
        assert exc_info.value.body == "Internal Server Error"
        assert "status 500" in str(exc_info.value)

    def test_empty_errors_list_is_transport_error(self) -> None:
        client, _ = make_client(lambda r: json_response({"errors": []}, 400))
        with pytest.raises(TransportError):
            client.get("/site/")

    def test_network_failure(self) -> None:
        def fail(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client, _ = make_client(fail)
        with pytest.raises(TransportError, match="request failed"):
            client.get("/site/")

    def test_single_attempt(self) -> None:
        client, server = make_client(lambda r: httpx.Response(503, text="busy"))
        with pytest.raises(TransportError):
            client.get("/site/")
        assert len(server.requests) == 1

    def test_follows_redirect(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "blog.example.com":
                target = str(request.url.copy_with(host="www.blog.example.com"))
                return httpx.Response(301, headers={"Location": target})
            return json_response({"posts": [{"id": "abc"}]})

        client, server = make_client(handler)
        assert json.loads(client.get("/posts/abc/")) == {"posts": [{"id": "abc"}]}
        assert [r.url.host for r in server.requests] == [
            "blog.example.com",
            "www.blog.example.com",
        ]

    def test_default_client_follows_redirects(self, endpoint: Endpoint) -> None:
        with AdminClient(endpoint) as client:
            assert client.client.follow_redirects is True

    def test_success_status_returns_body(self) -> None:
        response = httpx.Response(201, content=b"created")
        assert classify_response(response) == b"created"


class TestHelpers:
    def test_with_query_empty(self) -> None:
        assert with_query("/posts/", None) == "/posts/"
        assert with_query("/posts/", {}) == "/posts/"
        assert with_query("/posts/", {"filter": None}) == "/posts/"

    def test_with_query_encodes_sorted(self) -> None:
        result = with_query("/posts/", {"page": 2, "filter": "slug:a b"})
        assert result == "/posts/?filter=slug%3Aa+b&page=2"

    def test_decode_json_rejects_non_object(self) -> None:
        with pytest.raises(ResponseShapeError):
            decode_json(b"[1, 2]")

    def test_decode_json_rejects_garbage(self) -> None:
        with pytest.raises(ResponseShapeError, match="parsing response"):
            decode_json(b"<html>")


class TestUploadImage:
    def test_returns_url(self, tmp_path) -> None:
        image = tmp_path / "photo.png"
        image.write_bytes(b"\x89PNG")
        body = {"images": [{"url": "https://blog.example.com/content/photo.png", "ref": "hero"}]}
        client, server = make_client(lambda r: json_response(body, 201))

        url = client.upload_image(image, "hero")

        assert url == "https://blog.example.com/content/photo.png"
        request = server.requests[0]
        assert request.url.path == "/ghost/api/admin/images/upload/"
        assert request.headers["Content-Type"].startswith("multipart/form-data; boundary=")
        assert request.headers["Authorization"].startswith("Ghost ")
        assert b'name="ref"' in request.content

    @pytest.mark.parametrize(
        "body", [{}, {"images": []}, {"images": [{"url": ""}]}, {"images": "x"}]
    )
    def test_missing_url(self, tmp_path, body: dict) -> None:
        image = tmp_path / "photo.png"
        image.write_bytes(b"data")
        client, _ = make_client(lambda r: json_response(body))
        with pytest.raises(ResponseShapeError, match="no image URL"):
            client.upload_image(image)

    def test_missing_file(self, tmp_path) -> None:
        client, server = make_client(lambda r: json_response({}))
        with pytest.raises(OSError):
            client.upload_image(tmp_path / "missing.png")
        assert server.requests == []


class TestClientLifecycle:
    def test_injected_client_left_open(self, endpoint: Endpoint) -> None:
        http_client = httpx.Client(transport=httpx.MockTransport(lambda r: json_response({})))
        with AdminClient(endpoint, http_client=http_client):
            pass
        assert not http_client.is_closed
        http_client.close()

    def test_own_client_closed(self, endpoint: Endpoint) -> None:
        client = AdminClient(endpoint)
        client.close()
        assert client.client.is_closed
