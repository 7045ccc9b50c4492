"""Authentication benchmark: repeated register + authenticate cycles."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from didstream.apps.cli.common import fail, gateway_transport, init_logging, resolve_config
from didstream.config.const import DEFAULT_BENCH_DELAY_MS, DEFAULT_BENCH_OUT, DEFAULT_BENCH_RUNS
from didstream.services.device import DeviceClient
from didstream.services.gateway import GatewayClient
from didstream.services.identity import generate_identity
from didstream.services.metrics.benchmark import BenchmarkRun, run_benchmark, write_benchmark

app = typer.Typer(help="Slow-path authentication benchmark")


@app.command("run")
def cmd_run(
    server: Optional[str] = typer.Option(None, "--server", help="Gateway base URL"),
    runs: int = typer.Option(DEFAULT_BENCH_RUNS, "--runs", min=1, help="Number of auth cycles"),
    delay: int = typer.Option(DEFAULT_BENCH_DELAY_MS, "--delay", min=0, help="Pause between runs in milliseconds"),
    out: Path = typer.Option(Path(DEFAULT_BENCH_OUT), "--out", help="Output directory"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", envvar="DIDSTREAM_CONFIG", help="YAML config file"),
    offline: bool = typer.Option(False, "--offline", help="Talk to an in-process gateway double"),
):
    """Measure full slow-path latency (fresh key, register, authenticate) RUNS times."""
    cfg = resolve_config(config, server=server)
    init_logging(cfg)
    transport = gateway_transport(offline)

    def make_client(did: str) -> DeviceClient:
        gateway = GatewayClient(cfg.server, timeout=cfg.timeout, transport=transport)
        return DeviceClient(identity=generate_identity(did), gateway=gateway)

    def report(run: BenchmarkRun, total: int) -> None:
        status = f"ok {run.duration_ms:.0f}ms" if run.success else "FAILED"
        typer.echo(f"Run {run.run:>2}/{total}: {status}")

    typer.echo("=== DID Authentication Benchmark ===")
    typer.echo(f"Server: {cfg.server}")
    typer.echo(f"Runs:   {runs}\n")

    result = run_benchmark(make_client, server=cfg.server, runs=runs, delay=delay / 1000.0, on_run=report)
    if not result.successful:
        fail("All runs failed. Check gateway connectivity.")

    stats = result.stats()
    typer.echo("\nAuthentication Latency (ms):")
    typer.echo(f"  Mean:    {stats.mean:.2f}")
    typer.echo(f"  Median:  {stats.median:.2f}")
    typer.echo(f"  Std Dev: {stats.stddev:.2f}")
    typer.echo(f"  Min:     {stats.min:.2f}")
    typer.echo(f"  Max:     {stats.max:.2f}")
    typer.echo(f"  P95:     {stats.p95:.2f}")
    typer.echo(f"  P99:     {stats.p99:.2f}")
    typer.echo(f"Successful: {len(result.successful)}/{runs} ({result.success_rate:.1f}%)")

    csv_path, summary_path = write_benchmark(result, out)
    typer.echo(f"Results saved: {csv_path}")
    typer.echo(f"Summary saved: {summary_path}")
