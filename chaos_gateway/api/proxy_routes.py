"""
Catch-all route forwarding /api traffic to the backend.
"""

from fastapi import APIRouter, Depends, Request, Response

from chaos_gateway.api.deps import get_proxy_gateway
from chaos_gateway.proxy.gateway import ProxyGateway

router = APIRouter(prefix="/api", tags=["Proxy"])

PROXY_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]


@router.api_route("", methods=PROXY_METHODS, include_in_schema=False)
@router.api_route("/{path:path}", methods=PROXY_METHODS, include_in_schema=False)
async def proxy(
    request: Request,
    gateway: ProxyGateway = Depends(get_proxy_gateway),
) -> Response:
    """Forward the request unchanged apart from forwarding headers."""
    return await gateway.forward(request)
