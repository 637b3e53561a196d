"""
HTTP middleware wrapping every route.

- BodyLimitMiddleware rejects requests that declare an oversized body
- SecurityHeadersMiddleware stamps hardening headers on all responses
"""

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from chaos_gateway.logging import get_logger
from chaos_gateway.proxy.gateway import SECURITY_HEADERS

logger = get_logger(__name__)


class BodyLimitMiddleware(BaseHTTPMiddleware):
    """Reject requests whose Content-Length exceeds max_bytes."""

    def __init__(self, app: ASGIApp, max_bytes: int) -> None:
        super().__init__(app)
        self.max_bytes = max_bytes

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        declared = request.headers.get("content-length")
        if declared is not None:
            try:
                size = int(declared)
            except ValueError:
                return JSONResponse(
                    status_code=400,
                    content={"error": "Bad Request", "message": "Invalid Content-Length header"},
                )
            if size > self.max_bytes:
                logger.warning(
                    "Rejected %s %s: body of %d bytes exceeds limit of %d",
                    request.method,
                    request.url.path,
                    size,
                    self.max_bytes,
                )
                return JSONResponse(
                    status_code=413,
                    content={
                        "error": "Payload Too Large",
                        "message": f"Request body exceeds {self.max_bytes} bytes",
                        "limit": self.max_bytes,
                    },
                )
        return await call_next(request)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add hardening headers without overwriting ones already set."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response
