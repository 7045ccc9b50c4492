"""Build metadata for didstream.

The static version lives in ``pyproject.toml``; packaged builds and CI may
override it through ``DIDSTREAM_BUILD_VERSION`` / ``DIDSTREAM_BUILD_DATE``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
import os
from typing import Final


_BASE_VERSION: Final[str] = "0.1.0"


def _compute_version() -> str:
    return os.getenv("DIDSTREAM_BUILD_VERSION") or _BASE_VERSION


def _compute_build_date() -> str:
    explicit = os.getenv("DIDSTREAM_BUILD_DATE")
    if explicit:
        return explicit
    return datetime.now(tz=timezone.utc).isoformat()


@dataclass(frozen=True, slots=True)
class BuildInfo:
    version: str
    build_date: str


BUILD_INFO: Final[BuildInfo] = BuildInfo(version=_compute_version(), build_date=_compute_build_date())
