"""In-memory verifier gateway served through :class:`httpx.MockTransport`.

Used by the test-suite and for offline runs of the CLI. It implements the four
gateway endpoints closely enough to exercise the device protocol: the ES256
challenge is verified against the registered public key, tokens are opaque and
distinct, and revocation or scripted failures produce the same status codes a
real gateway would.
"""
from __future__ import annotations

import json
import time
from collections import defaultdict, deque
from dataclasses import dataclass, field
from typing import Any, Callable, Deque, Mapping

import httpx
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import encode_dss_signature

from didstream.config.const import AUTH_TOKEN_PATH, DATA_STREAM_PATH, DID_CREATE_PATH, DID_REVOKE_PATH
from didstream.services.auth.challenge import b64url_decode

__all__ = ["FakeGateway", "RecordedRequest"]


@dataclass(frozen=True, slots=True)
class RecordedRequest:
    path: str
    body: Any
    headers: Mapping[str, str]


@dataclass
class FakeGateway:
    clock: Callable[[], float] = time.time
    token_prefix: str = "T"
    dids: dict[str, ec.EllipticCurvePublicKey] = field(default_factory=dict)
    revoked: set[str] = field(default_factory=set)
    tokens: dict[str, str] = field(default_factory=dict)
    requests: list[RecordedRequest] = field(default_factory=list)
    _issued: int = field(default=0, init=False)
    _scripted: dict[str, Deque[int | Exception | None]] = field(default_factory=lambda: defaultdict(deque), init=False)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    # ------------------------------------------------------------------
    # Scripting helpers
    # ------------------------------------------------------------------
    def fail_next(self, path: str, status: int, *, times: int = 1, after: int = 0) -> None:
        """Answer ``times`` calls on ``path`` with ``status``, letting ``after`` calls through first."""
        for _ in range(after):
            self._scripted[path].append(None)
        for _ in range(times):
            self._scripted[path].append(status)

    def break_next(self, path: str, *, times: int = 1) -> None:
        """Raise a connection error for the next ``times`` calls on ``path``."""
        for _ in range(times):
            self._scripted[path].append(httpx.ConnectError("connection refused"))

    def expire(self, token: str) -> None:
        self.tokens.pop(token, None)

    def expire_all(self) -> None:
        self.tokens.clear()

    def revoke(self, did: str) -> None:
        self.revoked.add(did)
        for token, owner in list(self.tokens.items()):
            if owner == did:
                del self.tokens[token]

    def calls(self, path: str) -> list[RecordedRequest]:
        return [req for req in self.requests if req.path == path]

    # ------------------------------------------------------------------
    # Request handling
    # ------------------------------------------------------------------
    def handle(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        try:
            body = json.loads(request.content or b"{}")
        except ValueError:
            body = None
        self.requests.append(RecordedRequest(path=path, body=body, headers=dict(request.headers)))

        scripted = self._scripted.get(path)
        if scripted:
            action = scripted.popleft()
            if isinstance(action, Exception):
                raise action
            if action is not None:
                return httpx.Response(action, json={"error": "scripted failure"})

        if not isinstance(body, dict):
            return httpx.Response(400, json={"error": "invalid JSON body"})
        if path == DID_CREATE_PATH:
            return self._create(body)
        if path == AUTH_TOKEN_PATH:
            return self._token(request, body)
        if path == DATA_STREAM_PATH:
            return self._stream(request, body)
        if path == DID_REVOKE_PATH:
            return self._revoke(body)
        return httpx.Response(404, json={"error": "not found"})

    def _create(self, body: dict[str, Any]) -> httpx.Response:
        did = body.get("did")
        pem = body.get("publicKey")
        if not isinstance(did, str) or not isinstance(pem, str):
            return httpx.Response(400, json={"error": "did and publicKey are required"})
        if did in self.dids:
            return httpx.Response(409, json={"error": "DID already exists"})
        try:
            public_key = serialization.load_pem_public_key(pem.encode("ascii"))
        except ValueError:
            return httpx.Response(400, json={"error": "invalid public key"})
        if not isinstance(public_key, ec.EllipticCurvePublicKey):
            return httpx.Response(400, json={"error": "expected an EC public key"})
        self.dids[did] = public_key
        return httpx.Response(201, json={"did": did, "status": "registered"})

    def _token(self, request: httpx.Request, body: dict[str, Any]) -> httpx.Response:
        did = body.get("did")
        assertion = body.get("challenge_jwt")
        if not isinstance(did, str) or not isinstance(assertion, str):
            return httpx.Response(400, json={"error": "did and challenge_jwt are required"})
        if did in self.revoked:
            return httpx.Response(403, json={"error": "DID revoked"})
        public_key = self.dids.get(did)
        if public_key is None:
            return httpx.Response(404, json={"error": "unknown DID"})
        error = self._verify_challenge(public_key, assertion, did=did, audience=str(request.url))
        if error:
            return httpx.Response(401, json={"error": error})
        self._issued += 1
        token = f"{self.token_prefix}{self._issued}"
        self.tokens[token] = did
        return httpx.Response(200, json={"token": token})

    def _verify_challenge(self, public_key: ec.EllipticCurvePublicKey, assertion: str, *, did: str, audience: str) -> str | None:
        try:
            header_b64, payload_b64, signature_b64 = assertion.split(".")
            header = json.loads(b64url_decode(header_b64).decode("utf-8"))
            payload = json.loads(b64url_decode(payload_b64).decode("utf-8"))
            raw = b64url_decode(signature_b64)
        except ValueError:
            return "malformed challenge"
        if not isinstance(header, dict) or not isinstance(payload, dict):
            return "malformed challenge"
        if header.get("alg") != "ES256":
            return "unsupported algorithm"
        if payload.get("iss") != did:
            return "issuer mismatch"
        if payload.get("aud") != audience:
            return "audience mismatch"
        exp = payload.get("exp")
        if not isinstance(exp, (int, float)) or self.clock() >= exp:
            return "challenge expired"
        if len(raw) != 64:
            return "invalid signature"
        signature = encode_dss_signature(int.from_bytes(raw[:32], "big"), int.from_bytes(raw[32:], "big"))
        try:
            public_key.verify(signature, f"{header_b64}.{payload_b64}".encode("ascii"), ec.ECDSA(hashes.SHA256()))
        except InvalidSignature:
            return "invalid signature"
        return None

    def _stream(self, request: httpx.Request, body: dict[str, Any]) -> httpx.Response:
        auth = request.headers.get("Authorization", "")
        scheme, _, token = auth.partition(" ")
        owner = self.tokens.get(token) if scheme == "Bearer" else None
        if owner is None or owner in self.revoked:
            return httpx.Response(401, json={"error": "invalid or expired token"})
        if "temperature" not in body or "heartRate" not in body:
            return httpx.Response(422, json={"error": "missing telemetry fields"})
        return httpx.Response(200, json={"status": "accepted", "seq": body.get("seq")})

    def _revoke(self, body: dict[str, Any]) -> httpx.Response:
        did = body.get("did")
        if not isinstance(did, str) or did not in self.dids:
            return httpx.Response(404, json={"error": "unknown DID"})
        self.revoke(did)
        return httpx.Response(200, json={"did": did, "status": "revoked"})
