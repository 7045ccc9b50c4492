"""Exception hierarchy shared by the didstream services."""
from __future__ import annotations

from typing import Any

__all__ = [
    "DidStreamError",
    "ConfigError",
    "KeyGenerationError",
    "GatewayTransportError",
    "RegistrationError",
    "NotRegisteredError",
    "AlreadyRegisteredError",
    "AuthenticationError",
]


class DidStreamError(RuntimeError):
    """Base class for failures raised by didstream."""


class ConfigError(DidStreamError):
    """Raised when the device configuration is invalid."""


class KeyGenerationError(DidStreamError):
    """Raised when the platform cannot produce a P-256 keypair."""


class GatewayTransportError(DidStreamError):
    """Raised for transport-level faults (DNS, refused connection, timeout)."""

    def __init__(self, message: str, *, url: str, status_code: int = 0) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class RegistrationError(DidStreamError):
    """Raised when the gateway rejects the DID registration."""

    def __init__(self, message: str, *, status_code: int, payload: Any | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


class NotRegisteredError(DidStreamError):
    """Raised when authentication is attempted before the DID was registered."""


class AlreadyRegisteredError(DidStreamError):
    """Raised when a DID is registered twice by the same authenticator."""


class AuthenticationError(DidStreamError):
    """Raised by startup sequences when the initial slow-path exchange yields no token."""
