"""
One-shot backend connectivity check run after startup.

The result is only logged. It never changes the gateway's health state.
"""

import asyncio
from urllib.parse import urlsplit

import httpx

from chaos_gateway.logging import get_logger

logger = get_logger(__name__)


async def probe_backend(
    target: str,
    path: str = "/actuator/health",
    timeout_s: float = 5.0,
    delay_s: float = 0.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> int | None:
    """
    Probe the backend health endpoint and log the outcome.

    Args:
        target: Backend base URL
        path: Path to request on the backend
        timeout_s: Request timeout
        delay_s: Wait before probing, to let the backend start
        transport: Optional transport override (tests)

    Returns:
        Backend status code, or None if the backend could not be reached
    """
    if delay_s > 0:
        await asyncio.sleep(delay_s)

    url = f"{target.rstrip('/')}{path}"
    logger.info("Testing backend connectivity to %s...", target)

    async with httpx.AsyncClient(timeout=timeout_s, transport=transport) as client:
        try:
            response = await client.get(url)
        except httpx.TimeoutException:
            logger.error("Backend connectivity test timed out after %.0fs", timeout_s)
            return None
        except httpx.HTTPError as e:
            parts = urlsplit(target)
            logger.error("Backend connectivity test failed: %s", e)
            logger.error("   - Target: %s", target)
            logger.error("   - Hostname: %s", parts.hostname)
            logger.error("   - Port: %s", parts.port)
            return None

    logger.info(
        "Backend connectivity test: %d %s",
        response.status_code,
        response.reason_phrase,
    )
    return response.status_code
