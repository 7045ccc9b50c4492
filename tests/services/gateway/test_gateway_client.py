from __future__ import annotations

import json

import httpx
import pytest

from didstream.services.errors import GatewayTransportError
from didstream.services.gateway import GatewayClient


def _client(handler) -> GatewayClient:
    return GatewayClient("http://gateway.test/", timeout=1.0, transport=httpx.MockTransport(handler))


def test_endpoint_urls_strip_trailing_slash():
    client = _client(lambda request: httpx.Response(200))
    assert client.base_url == "http://gateway.test"
    assert client.did_create_url == "http://gateway.test/api/did/create"
    assert client.token_url == "http://gateway.test/api/auth/token"
    assert client.stream_url == "http://gateway.test/api/data/stream"
    assert client.did_revoke_url == "http://gateway.test/api/did/revoke"


def test_post_json_sends_json_and_headers():
    seen: dict[str, httpx.Request] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["request"] = request
        return httpx.Response(200, json={"token": "abc"})

    with _client(handler) as client:
        response = client.post_json(client.token_url, {"did": "did:fabric:x"}, headers={"Authorization": "Bearer t"})

    request = seen["request"]
    assert request.method == "POST"
    assert request.headers["Content-Type"] == "application/json"
    assert request.headers["Authorization"] == "Bearer t"
    assert json.loads(request.content) == {"did": "did:fabric:x"}
    assert response.ok is True
    assert response.status == 200
    assert response.body == {"token": "abc"}
    assert response.elapsed_ms >= 0


def test_non_2xx_is_reported_not_raised():
    with _client(lambda request: httpx.Response(500, json={"error": "boom"})) as client:
        response = client.post_json(client.stream_url, {})
    assert response.ok is False
    assert response.status == 500
    assert response.body == {"error": "boom"}


def test_non_json_body_is_wrapped_as_raw():
    with _client(lambda request: httpx.Response(502, text="Bad Gateway")) as client:
        response = client.post_json(client.stream_url, {})
    assert response.body == {"raw": "Bad Gateway"}


def test_connection_failure_raises_transport_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with _client(handler) as client:
        with pytest.raises(GatewayTransportError) as excinfo:
            client.post_json(client.token_url, {})
    assert excinfo.value.url == "http://gateway.test/api/auth/token"
    assert excinfo.value.status_code == 0


def test_timeout_raises_transport_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with _client(handler) as client:
        with pytest.raises(GatewayTransportError, match="timed out"):
            client.post_json(client.stream_url, {})


def test_corrupt_response_encoding_raises_transport_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, headers={"Content-Encoding": "gzip"}, content=b"not gzip at all")

    with _client(handler) as client:
        with pytest.raises(GatewayTransportError) as excinfo:
            client.post_json(client.stream_url, {})
    assert isinstance(excinfo.value.__cause__, httpx.DecodingError)


def test_revoke_posts_did(fake_gateway, gateway, identity):
    fake_gateway.dids[identity.did] = identity.public_key
    response = gateway.revoke(identity.did)
    assert response.ok
    assert identity.did in fake_gateway.revoked
