"""Unified device authentication client shared by the simulator, metrics and benchmark."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field

import httpx

from didstream.config.const import DEFAULT_TIMEOUT_S
from didstream.services.auth import ChallengeSigner, RegistrationResult, SessionState, SlowPathAuthenticator
from didstream.services.gateway import GatewayClient, GatewayResponse
from didstream.services.identity import Identity, generate_identity
from didstream.services.telemetry import FastPathStreamer, SampleFactory, SendResult, TelemetrySample, random_sample

__all__ = ["DeviceClient"]

_log = logging.getLogger("didstream.device")


@dataclass
class DeviceClient:
    """One identity, one session, one gateway.

    ``register`` runs once, ``authenticate`` may run any number of times, and
    ``send_telemetry`` re-authenticates on its own when the gateway answers 401.
    """

    identity: Identity
    gateway: GatewayClient
    signer: ChallengeSigner = field(default_factory=ChallengeSigner)
    session: SessionState = field(default_factory=SessionState)
    interval: float = 2.0
    sample_factory: SampleFactory = random_sample
    authenticator: SlowPathAuthenticator = field(init=False)
    streamer: FastPathStreamer = field(init=False)

    def __post_init__(self) -> None:
        self.authenticator = SlowPathAuthenticator(self.gateway, self.session, signer=self.signer)
        self.streamer = FastPathStreamer(
            identity=self.identity,
            gateway=self.gateway,
            session=self.session,
            authenticator=self.authenticator,
            interval=self.interval,
            sample_factory=self.sample_factory,
        )

    @classmethod
    def create(
        cls,
        base_url: str,
        *,
        did: str | None = None,
        interval: float = 2.0,
        timeout: float = DEFAULT_TIMEOUT_S,
        transport: httpx.BaseTransport | None = None,
    ) -> "DeviceClient":
        identity = generate_identity(did)
        gateway = GatewayClient(base_url, timeout=timeout, transport=transport)
        return cls(identity=identity, gateway=gateway, interval=interval)

    @property
    def did(self) -> str:
        return self.identity.did

    @property
    def token(self) -> str | None:
        return self.session.get()

    def register(self) -> RegistrationResult:
        return self.authenticator.register(self.identity)

    def authenticate(self) -> str | None:
        return self.authenticator.authenticate(self.identity)

    def send_telemetry(self, sample: TelemetrySample | None = None) -> SendResult:
        if sample is None:
            return self.streamer.tick()
        return self.streamer.send(sample)

    def revoke(self) -> GatewayResponse:
        _log.info("revoking DID %s", self.identity.did)
        return self.gateway.revoke(self.identity.did)

    def close(self) -> None:
        self.streamer.stop()
        self.gateway.close()

    def __enter__(self) -> "DeviceClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
