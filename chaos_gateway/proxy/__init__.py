"""
Reverse proxy to the backend service.
"""

from chaos_gateway.proxy.gateway import ProxyError, ProxyGateway

__all__ = ["ProxyError", "ProxyGateway"]
