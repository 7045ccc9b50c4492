from __future__ import annotations

import random
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable

__all__ = ["TelemetrySample", "SampleFactory", "random_sample", "utc_timestamp"]


def utc_timestamp() -> str:
    return datetime.now(tz=timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True, slots=True)
class TelemetrySample:
    temperature: float
    heart_rate: int
    timestamp: str
    seq: int | str

    def as_payload(self) -> dict[str, Any]:
        return {
            "temperature": self.temperature,
            "heartRate": self.heart_rate,
            "timestamp": self.timestamp,
            "seq": self.seq,
        }


SampleFactory = Callable[[int], TelemetrySample]


def random_sample(seq: int, *, rng: random.Random | None = None) -> TelemetrySample:
    """Simulated vitals: 20-30 degC and 60-99 bpm."""
    source = rng or random
    return TelemetrySample(
        temperature=round(20 + source.random() * 10, 2),
        heart_rate=60 + int(source.random() * 40),
        timestamp=utc_timestamp(),
        seq=seq,
    )
