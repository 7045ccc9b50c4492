from .client import GatewayClient, GatewayResponse

__all__ = ["GatewayClient", "GatewayResponse"]
