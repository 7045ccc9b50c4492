"""ES256 challenge assertions proving possession of the device key."""
from __future__ import annotations

import base64
import json
import time
from dataclasses import dataclass, field
from typing import Callable, Mapping
from urllib.parse import urlparse

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import decode_dss_signature

from didstream.config.const import CHALLENGE_TTL_S
from didstream.services.identity import Identity

__all__ = ["ChallengeSigner", "sign_assertion", "b64url", "b64url_decode"]


def b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def b64url_decode(data: str) -> bytes:
    padding = "=" * ((4 - len(data) % 4) % 4)
    return base64.urlsafe_b64decode(data + padding)


def sign_assertion(private_key: ec.EllipticCurvePrivateKey, header: Mapping[str, object], payload: Mapping[str, object]) -> str:
    header_json = json.dumps(header, sort_keys=True, separators=(",", ":")).encode("utf-8")
    payload_json = json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")
    protected = b64url(header_json)
    claims = b64url(payload_json)
    message = f"{protected}.{claims}".encode("ascii")
    signature_der = private_key.sign(message, ec.ECDSA(hashes.SHA256()))
    r, s = decode_dss_signature(signature_der)
    compact = b64url(r.to_bytes(32, "big") + s.to_bytes(32, "big"))
    return f"{protected}.{claims}.{compact}"


@dataclass(slots=True)
class ChallengeSigner:
    """Builds single-use challenge tokens bound to one token endpoint."""

    ttl_seconds: int = CHALLENGE_TTL_S
    clock: Callable[[], float] = field(default=time.time)

    def sign(self, identity: Identity, audience_url: str) -> str:
        parsed = urlparse(audience_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"audience must be an absolute http(s) URL, got {audience_url!r}")
        iat = int(self.clock())
        payload = {
            "iat": iat,
            "iss": identity.did,
            "aud": audience_url,
            "exp": iat + self.ttl_seconds,
        }
        return sign_assertion(identity.private_key, {"alg": "ES256", "typ": "JWT"}, payload)
