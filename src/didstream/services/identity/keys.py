from __future__ import annotations

import logging
import os
import re
import secrets
from dataclasses import dataclass, field
from pathlib import Path

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from didstream.config.const import DID_PREFIX
from didstream.services.errors import KeyGenerationError

__all__ = ["Identity", "generate_identity", "make_did", "persist_identity", "validate_did"]

_log = logging.getLogger("didstream.identity")

# did:<method>:<method-specific-id>, restricted to URL-safe characters
_DID_PATTERN = re.compile(r"^did:[a-z0-9]+:[A-Za-z0-9._:-]+$")

PRIVATE_KEY_FILENAME = "private.pem"
PUBLIC_KEY_FILENAME = "public.pem"


def make_did(prefix: str = DID_PREFIX) -> str:
    return f"{prefix}{secrets.token_hex(6)}"


def validate_did(did: str) -> str:
    value = (did or "").strip()
    if not _DID_PATTERN.match(value) or value.endswith(":"):
        raise ValueError(f"invalid DID: {did!r}")
    return value


@dataclass(frozen=True, slots=True)
class Identity:
    """Device identity: the DID plus its P-256 keypair.

    The private key stays in process memory; only ``public_key_pem`` is ever
    sent to the gateway.
    """

    did: str
    private_key: ec.EllipticCurvePrivateKey = field(repr=False)

    @property
    def public_key(self) -> ec.EllipticCurvePublicKey:
        return self.private_key.public_key()

    @property
    def public_key_pem(self) -> str:
        return self.public_key.public_bytes(
            serialization.Encoding.PEM,
            serialization.PublicFormat.SubjectPublicKeyInfo,
        ).decode("ascii")

    def private_key_pem(self) -> str:
        return self.private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        ).decode("ascii")


def generate_identity(did: str | None = None) -> Identity:
    """Create a fresh ES256 keypair and bind it to ``did`` (or a derived DID)."""

    resolved = validate_did(did) if did else make_did()
    try:
        private_key = ec.generate_private_key(ec.SECP256R1())
    except (UnsupportedAlgorithm, ValueError) as exc:
        raise KeyGenerationError("P-256 key generation is not available on this platform") from exc
    _log.debug("generated keypair did=%s", resolved)
    return Identity(did=resolved, private_key=private_key)


def persist_identity(identity: Identity, keydir: Path) -> tuple[Path, Path]:
    """Write ``private.pem`` (owner-only) and ``public.pem`` into ``keydir``."""

    keydir.mkdir(parents=True, exist_ok=True)
    private_path = keydir / PRIVATE_KEY_FILENAME
    public_path = keydir / PUBLIC_KEY_FILENAME
    fd = os.open(private_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as fh:
        fh.write(identity.private_key_pem())
    # an existing file keeps its old mode through O_CREAT
    try:
        private_path.chmod(0o600)
    except OSError as exc:
        _log.warning("could not restrict permissions on %s: %s", private_path, exc)
    public_path.write_text(identity.public_key_pem, encoding="utf-8")
    _log.info("keys saved to %s", keydir)
    return private_path, public_path
