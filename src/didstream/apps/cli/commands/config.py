"""Configuration file helpers."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from didstream.apps.cli.common import fail, resolve_config
from didstream.services.device_config import DeviceConfig, save_config

app = typer.Typer(help="Device configuration files")


@app.command("init")
def cmd_init(
    path: Path = typer.Argument(Path("didstream.yaml"), help="Where to write the YAML file"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing file"),
):
    """Write a configuration file populated with the defaults."""
    if path.exists() and not force:
        fail(f"{path} already exists (use --force to overwrite)")
    save_config(DeviceConfig(), path)
    typer.echo(f"Config written: {path}")


@app.command("show")
def cmd_show(
    path: Optional[Path] = typer.Option(None, "--config", "-c", envvar="DIDSTREAM_CONFIG", help="YAML config file"),
):
    """Print the effective configuration (file + environment)."""
    cfg = resolve_config(path)
    for key, value in vars(cfg).items():
        typer.echo(f"{key}: {value}")
