# src/didstream/config/const.py
from __future__ import annotations

# Gateway contract: fixed paths relative to the configurable base URL
DID_CREATE_PATH: str = "/api/did/create"
DID_REVOKE_PATH: str = "/api/did/revoke"
AUTH_TOKEN_PATH: str = "/api/auth/token"
DATA_STREAM_PATH: str = "/api/data/stream"

DEFAULT_SERVER: str = "http://localhost:3000"
DEFAULT_INTERVAL_MS: int = 2000
DEFAULT_TIMEOUT_S: float = 10.0
DEFAULT_KEYDIR: str = "keys"

DID_PREFIX: str = "did:fabric:rpi-"
BENCH_DID_PREFIX: str = "did:fabric:bench-"

# ES256 challenge lifetime, seconds
CHALLENGE_TTL_S: int = 30

# metrics runner
DEFAULT_METRICS_SERVER: str = DEFAULT_SERVER
DEFAULT_METRICS_COUNT: int = 50
DEFAULT_METRICS_INTERVAL_MS: int = 1500
DEFAULT_METRICS_OUT: str = "metrics_out"

# benchmark
DEFAULT_BENCH_RUNS: int = 20
DEFAULT_BENCH_DELAY_MS: int = 2000
DEFAULT_BENCH_OUT: str = "results"

ENV_PREFIX: str = "DIDSTREAM_"
