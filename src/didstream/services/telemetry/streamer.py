"""Fast path: periodic telemetry submission with 401-driven re-authentication."""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum

from didstream.services.auth.session import SessionState
from didstream.services.auth.slow_path import SlowPathAuthenticator
from didstream.services.errors import GatewayTransportError
from didstream.services.gateway import GatewayClient
from didstream.services.identity import Identity
from didstream.services.telemetry.sample import SampleFactory, TelemetrySample, random_sample

__all__ = ["FastPathStreamer", "SendOutcome", "SendResult", "StreamStats"]

_log = logging.getLogger("didstream.stream")


class SendOutcome(str, Enum):
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    TRANSPORT_ERROR = "transport_error"
    REAUTHENTICATED = "reauthenticated"
    REAUTH_FAILED = "reauth_failed"
    NO_SESSION = "no_session"

    @property
    def halts(self) -> bool:
        return self in (SendOutcome.REAUTH_FAILED, SendOutcome.NO_SESSION)


@dataclass(frozen=True, slots=True)
class SendResult:
    outcome: SendOutcome
    sample: TelemetrySample
    status: int | None = None
    elapsed_ms: float | None = None


@dataclass(slots=True)
class StreamStats:
    total: int = 0
    success: int = 0
    errors: int = 0
    reauths: int = 0
    latencies_ms: list[float] = field(default_factory=list)
    # wire seq of the sample behind each latencies_ms entry
    latency_seqs: list[int | str] = field(default_factory=list)

    @property
    def success_rate(self) -> float:
        if self.total == 0:
            return 0.0
        return self.success / self.total * 100.0


class FastPathStreamer:
    """Sends one telemetry sample per tick with the current bearer token.

    A 401 invalidates the session and triggers exactly one slow-path
    re-authentication before anything else is sent. If that fails the loop
    halts: there is no token left to send with.
    """

    def __init__(
        self,
        *,
        identity: Identity,
        gateway: GatewayClient,
        session: SessionState,
        authenticator: SlowPathAuthenticator,
        interval: float = 2.0,
        sample_factory: SampleFactory = random_sample,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.identity = identity
        self.interval = interval
        self._gateway = gateway
        self._session = session
        self._authenticator = authenticator
        self._sample_factory = sample_factory
        self._stats = StreamStats()
        self._seq = 0
        self._halted = False
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def stats(self) -> StreamStats:
        return self._stats

    @property
    def halted(self) -> bool:
        return self._halted

    # ------------------------------------------------------------------
    # Single-sample primitives
    # ------------------------------------------------------------------
    def tick(self) -> SendResult:
        sample = self._sample_factory(self._seq)
        self._seq += 1
        return self.send(sample)

    def send(self, sample: TelemetrySample) -> SendResult:
        token = self._session.get()
        if token is None:
            _log.error("[%s] no session token; refusing to send", sample.seq)
            return SendResult(SendOutcome.NO_SESSION, sample)

        try:
            response = self._gateway.post_json(
                self._gateway.stream_url,
                sample.as_payload(),
                headers={"Authorization": f"Bearer {token}"},
            )
        except GatewayTransportError as exc:
            self._stats.total += 1
            self._stats.errors += 1
            _log.warning("[%s] send error: %s", sample.seq, exc)
            return SendResult(SendOutcome.TRANSPORT_ERROR, sample)

        self._stats.total += 1
        self._stats.latencies_ms.append(response.elapsed_ms)
        self._stats.latency_seqs.append(sample.seq)

        if response.status == 401:
            _log.warning("[%s] token rejected, re-authenticating", sample.seq)
            return self._reauthenticate(sample, response.status, response.elapsed_ms)

        if not response.ok:
            self._stats.errors += 1
            _log.warning("[%s] ERROR %s: %s", sample.seq, response.status, response.body)
            return SendResult(SendOutcome.REJECTED, sample, response.status, response.elapsed_ms)

        self._stats.success += 1
        _log.info(
            "[%s] ok temp=%.2fC hr=%sbpm (%.0f ms)",
            sample.seq,
            sample.temperature,
            sample.heart_rate,
            response.elapsed_ms,
        )
        return SendResult(SendOutcome.ACCEPTED, sample, response.status, response.elapsed_ms)

    def _reauthenticate(self, sample: TelemetrySample, status: int, elapsed_ms: float) -> SendResult:
        self._session.invalidate()
        self._stats.reauths += 1
        try:
            token = self._authenticator.authenticate(self.identity)
        except GatewayTransportError as exc:
            _log.error("re-authentication transport failure: %s", exc)
            token = None
        if token is None:
            self._stats.errors += 1
            _log.error("re-authentication failed; stopping stream")
            return SendResult(SendOutcome.REAUTH_FAILED, sample, status, elapsed_ms)
        return SendResult(SendOutcome.REAUTHENTICATED, sample, status, elapsed_ms)

    # ------------------------------------------------------------------
    # Loop control
    # ------------------------------------------------------------------
    def run(self, max_ticks: int | None = None) -> StreamStats:
        """Tick until stopped, halted, or ``max_ticks`` is reached."""

        ticks = 0
        while not self._stop.is_set():
            result = self.tick()
            ticks += 1
            if result.outcome.halts:
                self._halted = True
                break
            if max_ticks is not None and ticks >= max_ticks:
                break
            if self._stop.wait(self.interval):
                break
        return self._stats

    def start(self, max_ticks: int | None = None) -> threading.Thread:
        if self._thread is not None and self._thread.is_alive():
            return self._thread
        self._stop.clear()
        self._thread = threading.Thread(
            target=self.run,
            kwargs={"max_ticks": max_ticks},
            name="didstream-stream",
            daemon=True,
        )
        self._thread.start()
        _log.info("telemetry stream started interval=%ss", self.interval)
        return self._thread

    def stop(self) -> None:
        self._stop.set()

    def join(self, timeout: float | None = None) -> bool:
        """Wait for the loop thread; returns True once it has finished."""
        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()
