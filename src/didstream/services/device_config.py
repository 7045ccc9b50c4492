"""Device configuration: YAML file, then DIDSTREAM_* environment, then CLI overrides."""
from __future__ import annotations

import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Mapping
from urllib.parse import urlparse

import yaml

from didstream.config.const import DEFAULT_INTERVAL_MS, DEFAULT_KEYDIR, DEFAULT_SERVER, DEFAULT_TIMEOUT_S, ENV_PREFIX
from didstream.services.errors import ConfigError

__all__ = ["DeviceConfig", "load_config", "save_config"]

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class DeviceConfig:
    server: str = DEFAULT_SERVER
    interval_ms: int = DEFAULT_INTERVAL_MS
    did: str | None = None
    keydir: str = DEFAULT_KEYDIR
    keep_keys: bool = False
    timeout: float = DEFAULT_TIMEOUT_S
    log_level: str = "INFO"
    log_json: bool = False
    log_file: str | None = None

    @property
    def interval_seconds(self) -> float:
        return self.interval_ms / 1000.0

    @property
    def keydir_path(self) -> Path:
        return Path(self.keydir).expanduser()

    def with_overrides(self, **overrides: Any) -> "DeviceConfig":
        """Return a copy with every non-None override applied."""
        data = asdict(self)
        data.update({key: value for key, value in overrides.items() if value is not None})
        return _coerce(data)

    def validate(self) -> "DeviceConfig":
        parsed = urlparse(self.server)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ConfigError(f"server must be an http(s) URL, got {self.server!r}")
        if self.interval_ms <= 0:
            raise ConfigError("interval_ms must be positive")
        if self.timeout <= 0:
            raise ConfigError("timeout must be positive")
        return self


def _coerce(data: Mapping[str, Any]) -> DeviceConfig:
    known = {f.name: f for f in fields(DeviceConfig)}
    values: dict[str, Any] = {}
    for key, raw in data.items():
        if key not in known or raw is None:
            continue
        default = known[key].default
        try:
            if isinstance(default, bool):
                values[key] = raw if isinstance(raw, bool) else str(raw).strip().lower() in _TRUTHY
            elif isinstance(default, int):
                values[key] = int(raw)
            elif isinstance(default, float):
                values[key] = float(raw)
            else:
                values[key] = str(raw)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"invalid value for {key}: {raw!r}") from exc
    return DeviceConfig(**values)


def _from_env(env: Mapping[str, str]) -> dict[str, str]:
    out: dict[str, str] = {}
    for f in fields(DeviceConfig):
        value = env.get(f"{ENV_PREFIX}{f.name.upper()}")
        if value not in (None, ""):
            out[f.name] = value
    return out


def load_config(path: Path | None = None, *, env: Mapping[str, str] | None = None) -> DeviceConfig:
    data: dict[str, Any] = {}
    if path is not None:
        if not path.exists():
            raise ConfigError(f"config file not found: {path}")
        try:
            loaded = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"failed to parse {path}: {exc}") from exc
        if not isinstance(loaded, dict):
            raise ConfigError(f"{path} must contain a mapping")
        data.update(loaded)
    data.update(_from_env(os.environ if env is None else env))
    return _coerce(data)


def save_config(config: DeviceConfig, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(asdict(config), sort_keys=False), encoding="utf-8")
    return path
