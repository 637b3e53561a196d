"""
Chaos Gateway

A reverse-proxy gateway that sits in front of a backend service and supports:
- Orchestrator health probes with healthy/degraded/unhealthy states
- Operator chaos controls (crash, toggle health, CPU/memory overload)
- Streaming request forwarding with structured failure responses
"""

__version__ = "1.0.0"
__author__ = "Chaos Gateway Team"

from chaos_gateway.config import Settings, get_settings

__all__ = ["__version__", "Settings", "get_settings"]
