from __future__ import annotations

import json

import pytest
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import encode_dss_signature

from didstream.services.auth.challenge import ChallengeSigner, b64url_decode

AUDIENCE = "http://gateway.test/api/auth/token"


def _decode(token: str) -> tuple[dict, dict, bytes]:
    header_b64, payload_b64, signature_b64 = token.split(".")
    header = json.loads(b64url_decode(header_b64))
    payload = json.loads(b64url_decode(payload_b64))
    return header, payload, b64url_decode(signature_b64)


def test_challenge_claims(identity):
    signer = ChallengeSigner(clock=lambda: 1_700_000_000.7)
    header, payload, _ = _decode(signer.sign(identity, AUDIENCE))

    assert header == {"alg": "ES256", "typ": "JWT"}
    assert payload == {
        "iat": 1_700_000_000,
        "iss": identity.did,
        "aud": AUDIENCE,
        "exp": 1_700_000_030,
    }


def test_challenge_signature_verifies_with_public_key(identity):
    token = ChallengeSigner().sign(identity, AUDIENCE)
    header_b64, payload_b64, _ = token.split(".")
    _, _, raw = _decode(token)

    assert len(raw) == 64
    signature = encode_dss_signature(int.from_bytes(raw[:32], "big"), int.from_bytes(raw[32:], "big"))
    identity.public_key.verify(signature, f"{header_b64}.{payload_b64}".encode("ascii"), ec.ECDSA(hashes.SHA256()))


def test_attempts_a_second_apart_carry_distinct_iat(identity):
    ticks = iter([1_700_000_000.0, 1_700_000_001.0])
    signer = ChallengeSigner(clock=lambda: next(ticks))
    first = signer.sign(identity, AUDIENCE)
    second = signer.sign(identity, AUDIENCE)

    assert first != second
    assert _decode(first)[1]["iat"] != _decode(second)[1]["iat"]


@pytest.mark.parametrize("audience", ["/api/auth/token", "gateway.test/api/auth/token", "ftp://gateway.test/x", ""])
def test_audience_must_be_absolute_http_url(identity, audience):
    with pytest.raises(ValueError):
        ChallengeSigner().sign(identity, audience)
