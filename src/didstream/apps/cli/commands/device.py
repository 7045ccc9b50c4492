"""Device simulator: register the DID, authenticate, then stream telemetry until stopped."""

from __future__ import annotations

import platform
import sys
from pathlib import Path
from typing import Optional

import typer

from didstream.apps.cli.common import fail, gateway_transport, init_logging, resolve_config
from didstream.services.device import DeviceClient
from didstream.services.errors import GatewayTransportError, KeyGenerationError, RegistrationError
from didstream.services.gateway import GatewayClient
from didstream.services.identity import generate_identity, persist_identity

app = typer.Typer(help="IoT device simulator")


def _print_summary(client: DeviceClient) -> None:
    stats = client.streamer.stats
    typer.echo("\n=== Session Summary ===")
    typer.echo(f"Total requests: {stats.total}")
    typer.echo(f"Successful: {stats.success}")
    typer.echo(f"Slow-path auths: {len(client.authenticator.attempts)}")
    typer.echo(f"Success rate: {stats.success_rate:.1f}%")


@app.command("run")
def cmd_run(
    server: Optional[str] = typer.Option(None, "--server", help="Gateway base URL"),
    interval: Optional[int] = typer.Option(None, "--interval", help="Telemetry interval in milliseconds"),
    did: Optional[str] = typer.Option(None, "--did", help="Use this DID instead of a generated one"),
    keep_keys: Optional[bool] = typer.Option(None, "--keep-keys/--no-keep-keys", help="Save the keypair as PEM files"),
    keydir: Optional[str] = typer.Option(None, "--keydir", help="Directory for saved keys"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", envvar="DIDSTREAM_CONFIG", help="YAML config file"),
    max_ticks: Optional[int] = typer.Option(None, "--max-ticks", min=1, help="Stop after this many samples"),
    offline: bool = typer.Option(False, "--offline", help="Talk to an in-process gateway double"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level"),
    log_json: Optional[bool] = typer.Option(None, "--log-json/--no-log-json", help="Emit JSON log lines"),
):
    """Run the device: slow-path login once, then fast-path telemetry."""
    cfg = resolve_config(
        config,
        server=server,
        interval_ms=interval,
        did=did,
        keep_keys=keep_keys,
        keydir=keydir,
        log_level=log_level,
        log_json=log_json,
    )
    init_logging(cfg)

    typer.echo("=== IoT Device Simulator ===")
    typer.echo(f"Server: {cfg.server}")
    typer.echo(f"Interval: {cfg.interval_ms}ms")
    typer.echo(f"Architecture: {platform.machine()}")
    typer.echo(f"Python: {sys.version.split()[0]}\n")

    typer.echo("[1/4] Generating ES256 keypair...")
    try:
        identity = generate_identity(cfg.did)
    except (KeyGenerationError, ValueError) as exc:
        fail(f"ERROR: {exc}")
    if cfg.keep_keys:
        persist_identity(identity, cfg.keydir_path)
        typer.echo(f"      Keys saved to {cfg.keydir_path}/")
    typer.echo(f"      DID: {identity.did}\n")

    gateway = GatewayClient(cfg.server, timeout=cfg.timeout, transport=gateway_transport(offline))
    with DeviceClient(identity=identity, gateway=gateway, interval=cfg.interval_seconds) as client:
        typer.echo("[2/4] Registering DID...")
        try:
            client.register()
        except RegistrationError as exc:
            fail(f"      FAILED: {exc.status_code} {exc.payload}")
        except GatewayTransportError as exc:
            fail(f"      FAILED: {exc}")
        typer.echo("      SUCCESS: DID registered\n")

        typer.echo("[3/4] Slow-path authentication...")
        try:
            token = client.authenticate()
        except GatewayTransportError as exc:
            fail(f"Initial authentication failed: {exc}")
        if token is None:
            fail("Initial authentication failed. Exiting.")
        typer.echo("      Token received\n")

        typer.echo("[4/4] Starting telemetry stream (fast-path)...")
        typer.echo("      Press Ctrl+C to stop\n")
        streamer = client.streamer
        streamer.start(max_ticks=max_ticks)
        try:
            while not streamer.join(timeout=0.5):
                pass
        except KeyboardInterrupt:
            streamer.stop()
            streamer.join(timeout=cfg.timeout + cfg.interval_seconds)

        _print_summary(client)
        if streamer.halted:
            fail("Re-authentication failed. Stopping.")
        typer.echo("\nStopped.")
