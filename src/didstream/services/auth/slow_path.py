"""Slow path: one-time DID registration and challenge/response token exchange."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from didstream.services.auth.challenge import ChallengeSigner
from didstream.services.auth.session import SessionState
from didstream.services.errors import AlreadyRegisteredError, NotRegisteredError, RegistrationError
from didstream.services.gateway import GatewayClient
from didstream.services.identity import Identity

__all__ = ["AuthAttempt", "RegistrationResult", "SlowPathAuthenticator", "redact_token"]

_log = logging.getLogger("didstream.auth")


def redact_token(token: str | None) -> str:
    if not token:
        return "-"
    if len(token) <= 8:
        return "*" * len(token)
    return token[:6] + "..."


@dataclass(frozen=True, slots=True)
class RegistrationResult:
    did: str
    status: int
    elapsed_ms: float
    body: Any


@dataclass(frozen=True, slots=True)
class AuthAttempt:
    ok: bool
    status: int
    elapsed_ms: float


class SlowPathAuthenticator:
    """Owns the registration state of one DID and refreshes the session token.

    Registration is performed once; :meth:`authenticate` may be repeated for
    the initial login and for every re-authentication after a 401.
    """

    def __init__(
        self,
        gateway: GatewayClient,
        session: SessionState,
        *,
        signer: ChallengeSigner | None = None,
    ) -> None:
        self._gateway = gateway
        self._session = session
        self._signer = signer or ChallengeSigner()
        self._registered: set[str] = set()
        self._attempts: list[AuthAttempt] = []

    @property
    def attempts(self) -> list[AuthAttempt]:
        return list(self._attempts)

    def is_registered(self, did: str) -> bool:
        return did in self._registered

    def register(self, identity: Identity) -> RegistrationResult:
        if identity.did in self._registered:
            raise AlreadyRegisteredError(f"{identity.did} is already registered")
        response = self._gateway.post_json(
            self._gateway.did_create_url,
            {"did": identity.did, "publicKey": identity.public_key_pem},
        )
        if not response.ok:
            _log.error("DID registration rejected did=%s status=%s body=%s", identity.did, response.status, response.body)
            raise RegistrationError(
                f"gateway rejected DID registration with HTTP {response.status}",
                status_code=response.status,
                payload=response.body,
            )
        self._registered.add(identity.did)
        _log.info("DID registered did=%s (%.0f ms)", identity.did, response.elapsed_ms)
        return RegistrationResult(
            did=identity.did,
            status=response.status,
            elapsed_ms=response.elapsed_ms,
            body=response.body,
        )

    def authenticate(self, identity: Identity) -> str | None:
        if identity.did not in self._registered:
            raise NotRegisteredError(f"{identity.did} must be registered before authenticating")
        token_url = self._gateway.token_url
        challenge = self._signer.sign(identity, token_url)
        _log.info("slow-path authentication did=%s", identity.did)
        response = self._gateway.post_json(token_url, {"did": identity.did, "challenge_jwt": challenge})

        token = None
        if response.ok and isinstance(response.body, dict):
            candidate = response.body.get("token")
            if isinstance(candidate, str) and candidate:
                token = candidate
        self._attempts.append(AuthAttempt(ok=token is not None, status=response.status, elapsed_ms=response.elapsed_ms))

        if token is None:
            if response.ok:
                _log.error("authentication response carried no token status=%s", response.status)
            else:
                _log.error("authentication failed status=%s body=%s", response.status, response.body)
            return None

        self._session.set(token)
        _log.info("token received %s (%.0f ms)", redact_token(token), response.elapsed_ms)
        return token
