"""
Process lifecycle state and the health reporter built on it.
"""

from chaos_gateway.lifecycle.health import HealthReport, HealthReporter, HealthStatus
from chaos_gateway.lifecycle.state import LifecycleSnapshot, LifecycleState

__all__ = [
    "HealthReport",
    "HealthReporter",
    "HealthStatus",
    "LifecycleSnapshot",
    "LifecycleState",
]
