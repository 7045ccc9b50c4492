"""Device-side DID authentication client with fast-path telemetry streaming."""

from didstream.build_info import BUILD_INFO

__version__ = BUILD_INFO.version

__all__ = ["__version__", "BUILD_INFO"]
