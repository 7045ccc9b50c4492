"""Repeated slow-path cycles (fresh identity, register, authenticate) with latency statistics."""
from __future__ import annotations

import logging
import platform
import secrets
import string
import sys
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

from didstream.config.const import BENCH_DID_PREFIX
from didstream.services.device import DeviceClient
from didstream.services.errors import DidStreamError
from didstream.services.metrics.report import write_csv
from didstream.services.metrics.stats import BenchmarkStats, benchmark_stats

__all__ = ["BenchmarkRun", "BenchmarkResult", "make_bench_did", "run_benchmark", "write_benchmark"]

_log = logging.getLogger("didstream.bench")

_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits


def make_bench_did() -> str:
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(6))
    return f"{BENCH_DID_PREFIX}{int(time.time() * 1000)}-{suffix}"


@dataclass(frozen=True, slots=True)
class BenchmarkRun:
    run: int
    duration_ms: float
    success: bool
    device_id: str
    error: str | None = None


@dataclass
class BenchmarkResult:
    server: str
    runs: list[BenchmarkRun] = field(default_factory=list)
    total_seconds: float = 0.0

    @property
    def successful(self) -> list[BenchmarkRun]:
        return [run for run in self.runs if run.success]

    @property
    def success_rate(self) -> float:
        if not self.runs:
            return 0.0
        return len(self.successful) / len(self.runs) * 100.0

    def stats(self) -> BenchmarkStats:
        return benchmark_stats([run.duration_ms for run in self.successful])


def _run_cycle(index: int, make_client: Callable[[str], DeviceClient]) -> BenchmarkRun:
    did = make_bench_did()
    start = time.perf_counter()
    error: str | None = None
    success = False
    try:
        with make_client(did) as client:
            client.register()
            success = client.authenticate() is not None
            if not success:
                error = "authentication rejected"
    except DidStreamError as exc:
        error = str(exc)
    duration = (time.perf_counter() - start) * 1000.0
    return BenchmarkRun(run=index, duration_ms=duration, success=success, device_id=did, error=error)


def run_benchmark(
    make_client: Callable[[str], DeviceClient],
    *,
    server: str,
    runs: int,
    delay: float,
    sleep: Callable[[float], None] = time.sleep,
    on_run: Callable[[BenchmarkRun, int], None] | None = None,
) -> BenchmarkResult:
    if runs <= 0:
        raise ValueError("runs must be positive")
    result = BenchmarkResult(server=server)
    started = time.monotonic()
    for index in range(1, runs + 1):
        run = _run_cycle(index, make_client)
        result.runs.append(run)
        if run.success:
            _log.info("run %s/%s ok %.0f ms", index, runs, run.duration_ms)
        else:
            _log.warning("run %s/%s failed: %s", index, runs, run.error)
        if on_run is not None:
            on_run(run, runs)
        if index < runs:
            sleep(delay)
    result.total_seconds = time.monotonic() - started
    return result


def _summary_text(result: BenchmarkResult, stats: BenchmarkStats, generated: str) -> str:
    return f"""
Raspberry Pi DID Authentication Benchmark
==========================================
Date:          {generated}
Server:        {result.server}
Architecture:  {platform.machine()}
Python:        {sys.version.split()[0]}
Platform:      {sys.platform}

Results:
--------
Total runs:    {len(result.runs)}
Successful:    {len(result.successful)} ({result.success_rate:.1f}%)
Total time:    {result.total_seconds:.1f}s

Latency (ms):
  Mean:        {stats.mean:.2f}
  Median:      {stats.median:.2f}
  Std Dev:     {stats.stddev:.2f}
  Min:         {stats.min:.2f}
  Max:         {stats.max:.2f}
  P95:         {stats.p95:.2f}
  P99:         {stats.p99:.2f}
"""


def write_benchmark(result: BenchmarkResult, out_dir: Path) -> tuple[Path, Path]:
    """Write the per-run CSV and the text summary; requires at least one successful run."""
    now = datetime.now(tz=timezone.utc)
    stamp = now.strftime("%Y-%m-%dT%H-%M-%S")
    rows = [
        {
            "run": run.run,
            "latency_ms": f"{run.duration_ms:.2f}",
            "success": str(run.success).lower(),
            "device_id": run.device_id,
        }
        for run in result.runs
    ]
    csv_path = write_csv(out_dir / f"rpi-benchmark-{stamp}.csv", rows)
    summary_path = out_dir / f"summary-{stamp}.txt"
    summary_path.write_text(_summary_text(result, result.stats(), now.isoformat()), encoding="utf-8")
    return csv_path, summary_path
