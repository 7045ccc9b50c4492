# src/didstream/apps/cli/app.py
from __future__ import annotations

from typing import Optional

import typer

from didstream.apps.cli.commands import bench, config, device, metrics
from didstream.build_info import BUILD_INFO

app = typer.Typer(help="DID-authenticated IoT device simulator", no_args_is_help=True)
app.add_typer(device.app, name="device")
app.add_typer(metrics.app, name="metrics")
app.add_typer(bench.app, name="bench")
app.add_typer(config.app, name="config")


def _print_version(value: bool) -> None:
    if value:
        typer.echo(f"didstream {BUILD_INFO.version} ({BUILD_INFO.build_date})")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(None, "--version", callback=_print_version, is_eager=True, help="Show version and exit"),
) -> None:
    """Register a DID, authenticate with a signed challenge and stream telemetry."""


if __name__ == "__main__":
    app()
