"""Helpers shared by the CLI commands."""
from __future__ import annotations

from pathlib import Path
from typing import Any, NoReturn, Optional

import httpx
import typer

from didstream.services.device_config import DeviceConfig, load_config
from didstream.services.errors import ConfigError
from didstream.services.logging import setup_logging
from didstream.services.testing.gateway_double import FakeGateway


def fail(message: str, code: int = 1) -> NoReturn:
    typer.secho(message, fg=typer.colors.RED, err=True)
    raise typer.Exit(code)


def resolve_config(config_path: Optional[Path], **overrides: Any) -> DeviceConfig:
    try:
        return load_config(config_path).with_overrides(**overrides).validate()
    except ConfigError as exc:
        fail(f"Configuration error: {exc}")


def init_logging(config: DeviceConfig) -> None:
    setup_logging(
        config.log_level,
        json_format=config.log_json,
        logfile=Path(config.log_file).expanduser() if config.log_file else None,
    )


def gateway_transport(offline: bool) -> Optional[httpx.BaseTransport]:
    """In offline mode every request is answered by an in-process gateway double."""
    if not offline:
        return None
    return FakeGateway().transport
