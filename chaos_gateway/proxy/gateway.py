"""
Streaming reverse proxy to the backend service.

Forwarding is a single linear pass with three hook points:
- on_proxy_request: build outbound headers (change-origin, forwarding headers)
- on_proxy_response: relay backend headers plus hardening headers
- on_proxy_error: turn a transport failure into a structured 500

There are no retries. Request and response bodies are streamed.
"""

from typing import Any
from uuid import uuid4

import httpx
from fastapi import Request
from fastapi.responses import JSONResponse, Response, StreamingResponse
from starlette.background import BackgroundTask

from chaos_gateway.logging import (
    clear_request_id,
    get_logger,
    redact_headers,
    set_request_id,
)

logger = get_logger(__name__)

# Headers that describe a single connection and must not be forwarded
HOP_BY_HOP_HEADERS = {
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailer",
    "trailers",
    "transfer-encoding",
    "upgrade",
}

# Added to every successful proxied response
SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
}

FORWARDED_PROTO = "http"


class ProxyError(Exception):
    """Raised when the backend cannot be reached or the exchange fails."""

    def __init__(self, target: str, path: str, code: str, detail: str) -> None:
        super().__init__(detail)
        self.target = target
        self.path = path
        self.code = code
        self.detail = detail

    def to_payload(self) -> dict[str, str]:
        """Client-visible error body. Never includes backend bytes."""
        return {
            "error": "Backend service unavailable",
            "message": "Cannot connect to backend server",
            "target": self.target,
            "path": self.path,
        }


class ProxyGateway:
    """
    Forwards requests to a single backend.

    Holds one lazily created httpx.AsyncClient; no other state is shared
    between requests.
    """

    def __init__(
        self,
        target: str,
        timeout_s: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize proxy gateway.

        Args:
            target: Backend base URL, e.g. http://backend:8080
            timeout_s: Single timeout applied to connect, write, read and pool
            transport: Optional transport override (tests)
        """
        self.target = target.rstrip("/")
        self.timeout_s = timeout_s
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout_s),
                transport=self._transport,
                follow_redirects=False,
            )
        return self._client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def on_proxy_request(self, request: Request) -> list[tuple[str, str]]:
        """
        Build outbound headers.

        The inbound Host header is dropped so httpx sets the backend host.
        """
        headers = [
            (k, v)
            for k, v in request.headers.items()
            if k.lower() not in HOP_BY_HOP_HEADERS
            and k.lower() not in ("host", "x-forwarded-proto", "x-real-ip")
        ]
        headers.append(("X-Forwarded-Proto", FORWARDED_PROTO))
        client_ip = request.client.host if request.client else ""
        if client_ip:
            headers.append(("X-Real-IP", client_ip))

        logger.info(
            "Proxying: %s %s -> %s%s",
            request.method,
            request.url.path,
            self.target,
            request.url.path,
        )
        logger.debug("Proxy request headers: %s", redact_headers(dict(headers)))
        return headers

    def on_proxy_response(
        self, upstream: httpx.Response, request: Request
    ) -> list[tuple[str, str]]:
        """Relay backend headers and stamp the hardening headers."""
        overridden = {k.lower() for k in SECURITY_HEADERS}
        headers = [
            (k, v)
            for k, v in upstream.headers.multi_items()
            if k.lower() not in HOP_BY_HOP_HEADERS and k.lower() not in overridden
        ]
        headers.extend(SECURITY_HEADERS.items())

        logger.info(
            "Proxy Response: %d %s %s",
            upstream.status_code,
            request.method,
            request.url.path,
        )
        return headers

    def on_proxy_error(self, exc: Exception, request: Request) -> JSONResponse:
        """Map a transport failure to the structured 500 response."""
        error = ProxyError(
            target=self.target,
            path=request.url.path,
            code=type(exc).__name__,
            detail=str(exc) or type(exc).__name__,
        )
        logger.error("Proxy Error: %s", error.detail)
        logger.error(
            "Proxy Error Details: code=%s target=%s path=%s",
            error.code,
            error.target,
            error.path,
        )
        return JSONResponse(status_code=500, content=error.to_payload())

    # ------------------------------------------------------------------
    # Forwarding
    # ------------------------------------------------------------------

    def build_url(self, request: Request) -> str:
        """Backend URL for a request: target + undecoded path + query."""
        raw_path = request.scope.get("raw_path")
        path = raw_path.split(b"?", 1)[0].decode("latin-1") if raw_path else request.url.path
        url = f"{self.target}{path}"
        if request.url.query:
            url = f"{url}?{request.url.query}"
        return url

    @staticmethod
    def _has_body(request: Request) -> bool:
        return "content-length" in request.headers or "transfer-encoding" in request.headers

    async def forward(self, request: Request) -> Response:
        """
        Forward a request to the backend.

        Errors raised before the backend response starts are returned as a
        500 JSON body. Once streaming has begun, a failure aborts the
        connection instead of appending anything to the relayed body.
        """
        set_request_id(request.headers.get("x-request-id") or uuid4().hex[:12])
        try:
            headers = self.on_proxy_request(request)
            content: Any = request.stream() if self._has_body(request) else None

            client = await self._get_client()
            outbound = client.build_request(
                request.method,
                self.build_url(request),
                headers=headers,
                content=content,
            )
            try:
                upstream = await client.send(outbound, stream=True)
            except httpx.HTTPError as e:
                return self.on_proxy_error(e, request)

            response_headers = self.on_proxy_response(upstream, request)
            response = StreamingResponse(
                self._relay(upstream, request),
                status_code=upstream.status_code,
                background=BackgroundTask(upstream.aclose),
            )
            response.raw_headers = [
                (k.lower().encode("latin-1"), v.encode("latin-1"))
                for k, v in response_headers
            ]
            return response
        finally:
            clear_request_id()

    async def _relay(self, upstream: httpx.Response, request: Request):
        """Yield backend body bytes as received, without decoding."""
        try:
            if upstream.is_stream_consumed:
                # Body was already read by the transport
                yield upstream.content
                return
            async for chunk in upstream.aiter_raw():
                yield chunk
        except httpx.HTTPError as e:
            logger.error(
                "Proxy stream aborted: code=%s target=%s path=%s error=%s",
                type(e).__name__,
                self.target,
                request.url.path,
                e,
            )
            raise
        finally:
            await upstream.aclose()
