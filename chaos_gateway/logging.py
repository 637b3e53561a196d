"""
Structured logging configuration for the chaos gateway.

Provides consistent logging format across all modules with:
- JSON structured output for production
- Human-readable output for development
- Redaction of sensitive headers before proxied traffic is logged
- Request ID tracking for correlating proxy log lines
"""

import logging
import sys
from collections.abc import Mapping
from contextvars import ContextVar
from datetime import UTC, datetime

# Context variable for tracking request IDs across async operations
current_request_id: ContextVar[str | None] = ContextVar("current_request_id", default=None)

# Header names whose values must never reach the logs
SENSITIVE_HEADERS = {
    "authorization",
    "proxy-authorization",
    "cookie",
    "set-cookie",
    "x-api-key",
    "x-auth-token",
}

REDACTED = "[REDACTED]"


def redact_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """
    Redact sensitive values from a headers mapping.

    Args:
        headers: Original headers

    Returns:
        New dict with sensitive values replaced by [REDACTED]
    """
    return {
        k: REDACTED if k.lower() in SENSITIVE_HEADERS else v
        for k, v in headers.items()
    }


class GatewayFormatter(logging.Formatter):
    """
    Custom formatter for gateway logs.

    Includes timestamp, level, module, request_id (if set), and message.
    """

    def format(self, record: logging.LogRecord) -> str:
        record.timestamp = datetime.now(UTC).isoformat()

        request_id = current_request_id.get()
        record.request_id = f"[{request_id}] " if request_id else ""

        return super().format(record)


def setup_logging(level: str = "INFO", json_output: bool = False) -> logging.Logger:
    """
    Configure logging for the gateway.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: If True, output JSON format (for production)

    Returns:
        Configured root logger
    """
    root = logging.getLogger()
    root.handlers.clear()

    numeric_level = getattr(logging, level.upper(), logging.INFO)
    root.setLevel(numeric_level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)

    if json_output:
        fmt = (
            '{"timestamp": "%(timestamp)s", "level": "%(levelname)s", '
            '"module": "%(name)s", "request_id": "%(request_id)s", "message": "%(message)s"}'
        )
    else:
        fmt = "%(timestamp)s | %(levelname)-8s | %(name)s | %(request_id)s%(message)s"

    handler.setFormatter(GatewayFormatter(fmt))
    root.addHandler(handler)

    # Suppress noisy third-party loggers
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    return root


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a specific module.

    Args:
        name: Module name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def set_request_id(request_id: str) -> None:
    """Set the current request ID for log correlation."""
    current_request_id.set(request_id)


def clear_request_id() -> None:
    """Clear the current request ID."""
    current_request_id.set(None)
