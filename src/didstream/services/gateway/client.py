# src/didstream/services/gateway/client.py
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Mapping, MutableMapping

import httpx

from didstream.config.const import (
    AUTH_TOKEN_PATH,
    DATA_STREAM_PATH,
    DEFAULT_SERVER,
    DEFAULT_TIMEOUT_S,
    DID_CREATE_PATH,
    DID_REVOKE_PATH,
)
from didstream.services.errors import GatewayTransportError

__all__ = ["GatewayClient", "GatewayResponse"]

_log = logging.getLogger("didstream.gateway")


@dataclass(frozen=True, slots=True)
class GatewayResponse:
    ok: bool
    status: int
    body: Any
    elapsed_ms: float
    headers: Mapping[str, str] = field(default_factory=dict)


class GatewayClient:
    """JSON-over-HTTP transport for the verifier gateway.

    Carries no protocol knowledge: non-2xx answers come back as
    ``GatewayResponse(ok=False, ...)`` and only transport faults raise
    :class:`GatewayTransportError`.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_SERVER,
        *,
        timeout: float = DEFAULT_TIMEOUT_S,
        transport: httpx.BaseTransport | None = None,
        default_headers: Mapping[str, str] | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = httpx.Client(
            timeout=timeout,
            transport=transport,
            headers=dict(default_headers or {}),
        )

    # ---------- endpoints -----------------------------------------------------
    def url_for(self, path: str) -> str:
        return f"{self.base_url}{path}"

    @property
    def did_create_url(self) -> str:
        return self.url_for(DID_CREATE_PATH)

    @property
    def did_revoke_url(self) -> str:
        return self.url_for(DID_REVOKE_PATH)

    @property
    def token_url(self) -> str:
        return self.url_for(AUTH_TOKEN_PATH)

    @property
    def stream_url(self) -> str:
        return self.url_for(DATA_STREAM_PATH)

    # ---------- transport -----------------------------------------------------
    def post_json(
        self,
        url: str,
        body: Mapping[str, Any],
        headers: Mapping[str, str] | None = None,
    ) -> GatewayResponse:
        request_headers: MutableMapping[str, str] = {"Content-Type": "application/json"}
        if headers:
            request_headers.update({str(k): str(v) for k, v in headers.items()})

        start = time.perf_counter()
        try:
            response = self._client.post(url, json=dict(body), headers=request_headers)
            response.read()
        except httpx.TimeoutException as exc:
            raise GatewayTransportError(f"POST {url} timed out after {self.timeout}s", url=url) from exc
        except httpx.RequestError as exc:
            raise GatewayTransportError(f"POST {url} failed: {exc}", url=url) from exc
        elapsed_ms = (time.perf_counter() - start) * 1000.0

        content: Any
        try:
            content = response.json()
        except ValueError:
            content = {"raw": response.text}

        result = GatewayResponse(
            ok=response.is_success,
            status=response.status_code,
            body=content,
            elapsed_ms=elapsed_ms,
            headers=dict(response.headers),
        )
        _log.debug("POST %s -> %s (%.1f ms)", url, result.status, elapsed_ms)
        return result

    def revoke(self, did: str) -> GatewayResponse:
        """Ask the gateway to revoke ``did``; used by metrics tooling only."""
        return self.post_json(self.did_revoke_url, {"did": did})

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "GatewayClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
