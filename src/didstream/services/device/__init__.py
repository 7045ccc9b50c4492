from .client import DeviceClient

__all__ = ["DeviceClient"]
