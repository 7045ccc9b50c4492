"""CSV, JSON and HTML writers for metrics and benchmark runs."""
from __future__ import annotations

import csv
import html
import json
from pathlib import Path
from typing import Any, Mapping, Sequence

__all__ = ["write_csv", "write_json", "write_html_report"]


def write_csv(path: Path, rows: Sequence[Mapping[str, Any]]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="") as fh:
        if rows:
            writer = csv.DictWriter(fh, fieldnames=list(rows[0].keys()))
            writer.writeheader()
            writer.writerows(rows)
    return path


def write_json(path: Path, payload: Mapping[str, Any]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    return path


_HTML_TEMPLATE = """<!doctype html>
<html>
<head>
  <meta charset="utf-8" />
  <title>IoT DID Metrics Report</title>
  <script src="https://cdn.jsdelivr.net/npm/chart.js"></script>
  <style>
    body {{ font-family: system-ui, -apple-system, sans-serif; margin: 20px; }}
    .grid {{ display: grid; grid-template-columns: 1fr; gap: 24px; }}
    canvas {{ max-width: 100%; height: 320px; }}
    .card {{ border: 1px solid #ddd; border-radius: 8px; padding: 16px; }}
    .badge {{ display: inline-block; padding: 4px 8px; border-radius: 6px; background: #eef; }}
  </style>
</head>
<body>
  <h1>IoT DID Metrics Report</h1>
  <div>Server: <span class="badge">{server}</span></div>
  <div>DID: <span class="badge">{did}</span></div>
  <div>Generated: {generated}</div>
  <div class="grid">
    <div class="card"><h3>Slow-path Auth Latency (ms)</h3><canvas id="authChart"></canvas></div>
    <div class="card"><h3>Fast-path Stream Latency (ms)</h3><canvas id="streamChart"></canvas></div>
    <div class="card"><h3>Summary</h3><pre>{summary}</pre></div>
  </div>
  <script>
    const AUTH = {auth_rows};
    const STREAM = {stream_rows};
    new Chart(document.getElementById('authChart'), {{
      type: 'line',
      data: {{ labels: AUTH.map(r => r.sample), datasets: [{{ label: 'Auth Latency (ms)', data: AUTH.map(r => r.latency_ms), borderColor: '#1f77b4' }}] }},
      options: {{ responsive: true }}
    }});
    new Chart(document.getElementById('streamChart'), {{
      type: 'line',
      data: {{ labels: STREAM.map(r => r.seq), datasets: [{{ label: 'Stream Latency (ms)', data: STREAM.map(r => r.latency_ms), borderColor: '#2ca02c' }}] }},
      options: {{ responsive: true }}
    }});
  </script>
</body>
</html>
"""


def _script_json(value: Any) -> str:
    # keep "</script>" sequences out of inline script blocks
    return json.dumps(value).replace("</", "<\\/")


def write_html_report(
    path: Path,
    summary: Mapping[str, Any],
    auth_rows: Sequence[Mapping[str, Any]],
    stream_rows: Sequence[Mapping[str, Any]],
) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    document = _HTML_TEMPLATE.format(
        server=html.escape(str(summary.get("server", ""))),
        did=html.escape(str(summary.get("did", ""))),
        generated=html.escape(str(summary.get("generatedAt", ""))),
        summary=html.escape(json.dumps(summary, indent=2)),
        auth_rows=_script_json(list(auth_rows)),
        stream_rows=_script_json(list(stream_rows)),
    )
    path.write_text(document, encoding="utf-8")
    return path
