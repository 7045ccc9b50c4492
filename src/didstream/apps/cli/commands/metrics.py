"""Metrics runner: latency per path, re-auth events and revocation enforcement."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from didstream.apps.cli.common import fail, gateway_transport, init_logging, resolve_config
from didstream.config.const import DEFAULT_METRICS_COUNT, DEFAULT_METRICS_INTERVAL_MS, DEFAULT_METRICS_OUT
from didstream.services.device import DeviceClient
from didstream.services.errors import AuthenticationError, GatewayTransportError, RegistrationError
from didstream.services.gateway import GatewayClient
from didstream.services.identity import generate_identity, persist_identity
from didstream.services.metrics.runner import run_metrics, write_outputs

app = typer.Typer(help="Latency and revocation metrics against a gateway")


@app.command("run")
def cmd_run(
    server: Optional[str] = typer.Option(None, "--server", help="Gateway base URL"),
    count: int = typer.Option(DEFAULT_METRICS_COUNT, "--count", min=1, help="Telemetry samples to send"),
    interval: int = typer.Option(DEFAULT_METRICS_INTERVAL_MS, "--interval", min=0, help="Delay between samples in milliseconds"),
    keep_keys: Optional[bool] = typer.Option(None, "--keep-keys/--no-keep-keys", help="Save the keypair as PEM files"),
    keydir: Optional[str] = typer.Option(None, "--keydir", help="Directory for saved keys"),
    out: Path = typer.Option(Path(DEFAULT_METRICS_OUT), "--out", help="Output directory"),
    revoke: bool = typer.Option(True, "--revoke/--no-revoke", help="Revoke the DID at the end and check enforcement"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", envvar="DIDSTREAM_CONFIG", help="YAML config file"),
    offline: bool = typer.Option(False, "--offline", help="Talk to an in-process gateway double"),
):
    """Register, authenticate, stream COUNT samples, check revocation and write reports."""
    cfg = resolve_config(config, server=server, keep_keys=keep_keys, keydir=keydir)
    init_logging(cfg)

    typer.echo("=== Metrics Runner (IoT DID Gateway) ===")
    typer.echo(f"Server: {cfg.server}")
    typer.echo(f"Count: {count}")
    typer.echo(f"Interval: {interval}ms")
    typer.echo(f"Output dir: {out}\n")

    identity = generate_identity()
    if cfg.keep_keys:
        persist_identity(identity, cfg.keydir_path)
    gateway = GatewayClient(cfg.server, timeout=cfg.timeout, transport=gateway_transport(offline))
    with DeviceClient(identity=identity, gateway=gateway, interval=max(interval, 1) / 1000.0) as client:
        typer.echo(f"DID: {client.did}")
        try:
            report = run_metrics(client, count=count, interval=interval / 1000.0, revoke=revoke)
        except RegistrationError as exc:
            fail(f"Register FAILED {exc.status_code} {exc.payload}")
        except AuthenticationError as exc:
            fail(f"Initial auth failed: {exc}")
        except GatewayTransportError as exc:
            fail(f"Gateway unreachable: {exc}")

    summary = report.summary()
    counts = summary["counts"]
    typer.echo(f"Done. Success={counts['success']}, Errors={counts['errors']}, Reauths={counts['reauths']}")
    if revoke:
        typer.echo(f"Revocation enforcement: {'BLOCKED' if report.revoked_blocked else 'NOT BLOCKED'}")

    paths = write_outputs(report, out)
    typer.echo("Outputs written:")
    for path in paths.values():
        typer.echo(f"  - {path}")
