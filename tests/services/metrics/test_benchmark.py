from __future__ import annotations

import csv
import re

from didstream.config.const import DID_CREATE_PATH
from didstream.services.device import DeviceClient
from didstream.services.gateway import GatewayClient
from didstream.services.identity import generate_identity
from didstream.services.metrics.benchmark import make_bench_did, run_benchmark, write_benchmark


def _factory(fake_gateway):
    def make_client(did: str) -> DeviceClient:
        gateway = GatewayClient("http://gateway.test", timeout=1.0, transport=fake_gateway.transport)
        return DeviceClient(identity=generate_identity(did), gateway=gateway)

    return make_client


def test_bench_did_format():
    assert re.fullmatch(r"did:fabric:bench-\d{13}-[a-z0-9]{6}", make_bench_did())


def test_benchmark_runs_full_cycles(fake_gateway):
    seen = []
    result = run_benchmark(
        _factory(fake_gateway),
        server="http://gateway.test",
        runs=3,
        delay=0.0,
        sleep=lambda _: None,
        on_run=lambda run, total: seen.append((run.run, total)),
    )

    assert len(result.successful) == 3
    assert result.success_rate == 100.0
    assert seen == [(1, 3), (2, 3), (3, 3)]
    assert len(fake_gateway.dids) == 3
    assert result.stats().min <= result.stats().max


def test_failed_cycle_is_recorded(fake_gateway):
    fake_gateway.fail_next(DID_CREATE_PATH, 500)
    result = run_benchmark(_factory(fake_gateway), server="http://gateway.test", runs=2, delay=0.0, sleep=lambda _: None)

    first, second = result.runs
    assert first.success is False
    assert "HTTP 500" in (first.error or "")
    assert second.success is True


def test_write_benchmark(tmp_path, fake_gateway):
    result = run_benchmark(_factory(fake_gateway), server="http://gateway.test", runs=2, delay=0.0, sleep=lambda _: None)
    csv_path, summary_path = write_benchmark(result, tmp_path)

    assert csv_path.name.startswith("rpi-benchmark-")
    with csv_path.open(encoding="utf-8") as fh:
        rows = list(csv.DictReader(fh))
    assert [row["run"] for row in rows] == ["1", "2"]
    assert all(row["success"] == "true" for row in rows)
    text = summary_path.read_text(encoding="utf-8")
    assert "Successful:    2 (100.0%)" in text
    assert "P99:" in text
