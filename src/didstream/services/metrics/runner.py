"""Metrics run: slow-path latency, fast-path latency, re-auth events and revocation enforcement."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

from didstream.services.device import DeviceClient
from didstream.services.errors import AuthenticationError, GatewayTransportError
from didstream.services.metrics.report import write_csv, write_html_report, write_json
from didstream.services.metrics.stats import summarize_latencies
from didstream.services.telemetry import StreamStats, TelemetrySample, utc_timestamp

__all__ = ["MetricsReport", "run_metrics", "check_revocation", "write_outputs"]

_log = logging.getLogger("didstream.metrics")


@dataclass
class MetricsReport:
    server: str
    did: str
    count: int
    registration_ms: float
    auth_latencies_ms: list[float]
    stream: StreamStats
    reauths: int
    revoked_blocked: bool = False
    generated_at: str = field(default_factory=lambda: datetime.now(tz=timezone.utc).isoformat())

    def auth_rows(self) -> list[dict[str, int]]:
        return [{"sample": i, "latency_ms": round(ms)} for i, ms in enumerate(self.auth_latencies_ms)]

    def stream_rows(self) -> list[dict[str, int | str]]:
        return [
            {"seq": seq, "latency_ms": round(ms)}
            for seq, ms in zip(self.stream.latency_seqs, self.stream.latencies_ms)
        ]

    def summary(self) -> dict[str, Any]:
        return {
            "server": self.server,
            "did": self.did,
            "counts": {
                "success": self.stream.success,
                "errors": self.stream.errors,
                "reauths": self.reauths,
                "total": self.count,
            },
            "registration_ms": round(self.registration_ms),
            "auth_latency_ms": summarize_latencies(self.auth_latencies_ms).as_dict(),
            "stream_latency_ms": summarize_latencies(self.stream.latencies_ms).as_dict(),
            "revokedBlocked": self.revoked_blocked,
            "generatedAt": self.generated_at,
        }


def check_revocation(client: DeviceClient) -> bool:
    """Revoke the DID, then send one sample with the old token without re-auth.

    Returns True when the gateway blocked that send with 401.
    """
    token = client.token
    if token is None:
        _log.warning("no live token; skipping revocation check")
        return False
    try:
        revoke = client.revoke()
        if not revoke.ok:
            _log.warning("revocation call failed status=%s; skipping enforcement check", revoke.status)
            return False
        sample = TelemetrySample(
            temperature=25.1,
            heart_rate=70,
            timestamp=utc_timestamp(),
            seq="revoke-test",
        )
        response = client.gateway.post_json(
            client.gateway.stream_url,
            sample.as_payload(),
            headers={"Authorization": f"Bearer {token}"},
        )
    except GatewayTransportError as exc:
        _log.warning("revocation check error: %s", exc)
        return False
    blocked = response.status == 401
    _log.info("revocation enforcement: %s", "BLOCKED" if blocked else "NOT BLOCKED")
    return blocked


def run_metrics(
    client: DeviceClient,
    *,
    count: int,
    interval: float,
    revoke: bool = True,
    sleep: Callable[[float], None] = time.sleep,
) -> MetricsReport:
    if count <= 0:
        raise ValueError("count must be positive")

    registration = client.register()
    if client.authenticate() is None:
        raise AuthenticationError("initial authentication failed")

    for i in range(count):
        result = client.send_telemetry()
        if result.outcome.halts:
            _log.error("[%s] %s; ending stream phase", i, result.outcome.value)
            break
        if i < count - 1:
            sleep(interval)

    stats = client.streamer.stats
    _log.info("stream done success=%s errors=%s reauths=%s", stats.success, stats.errors, stats.reauths)

    blocked = check_revocation(client) if revoke else False
    attempts = client.authenticator.attempts
    return MetricsReport(
        server=client.gateway.base_url,
        did=client.did,
        count=count,
        registration_ms=registration.elapsed_ms,
        auth_latencies_ms=[a.elapsed_ms for a in attempts],
        stream=stats,
        reauths=sum(1 for a in attempts if a.ok),
        revoked_blocked=blocked,
    )


def write_outputs(report: MetricsReport, out_dir: Path) -> dict[str, Path]:
    auth_rows = report.auth_rows()
    stream_rows = report.stream_rows()
    summary = report.summary()
    return {
        "auth_csv": write_csv(out_dir / "auth_latency.csv", auth_rows),
        "stream_csv": write_csv(out_dir / "stream_latency.csv", stream_rows),
        "summary": write_json(out_dir / "summary.json", summary),
        "report": write_html_report(out_dir / "report.html", summary, auth_rows, stream_rows),
    }
