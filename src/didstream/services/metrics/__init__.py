"""Latency metrics, revocation checks and benchmark reporting."""
