"""
FastAPI dependency providers.

One LifecycleState per process is shared by the health reporter and the
chaos controller; both receive it through their constructors. Providers are
lazily initialized and can be overridden in tests.
"""

from fastapi import Depends

from chaos_gateway.chaos.controller import ChaosController, OverloadConfig
from chaos_gateway.chaos.stressor import ResourceStressor
from chaos_gateway.config import Settings, get_settings_dep
from chaos_gateway.lifecycle.health import HealthReporter
from chaos_gateway.lifecycle.state import LifecycleState
from chaos_gateway.proxy.gateway import ProxyGateway

_lifecycle_state: LifecycleState | None = None
_chaos_controller: ChaosController | None = None
_proxy_gateway: ProxyGateway | None = None


def get_lifecycle_state() -> LifecycleState:
    """Get or create the process lifecycle state."""
    global _lifecycle_state
    if _lifecycle_state is None:
        _lifecycle_state = LifecycleState()
    return _lifecycle_state


def get_health_reporter(
    state: LifecycleState = Depends(get_lifecycle_state),
) -> HealthReporter:
    return HealthReporter(state)


def get_chaos_controller(
    settings: Settings = Depends(get_settings_dep),
    state: LifecycleState = Depends(get_lifecycle_state),
) -> ChaosController:
    """Get or create the chaos controller singleton."""
    global _chaos_controller
    if _chaos_controller is None:
        _chaos_controller = ChaosController(
            state=state,
            stressor=ResourceStressor(),
            overload=OverloadConfig(
                period_s=settings.overload_period_ms / 1000,
                burn_duration_s=settings.overload_burn_ms / 1000,
                alloc_volume=settings.overload_alloc_volume,
                retain_s=settings.overload_retain_ms / 1000,
            ),
            crash_countdown=settings.crash_countdown_s,
        )
    return _chaos_controller


def get_proxy_gateway(settings: Settings = Depends(get_settings_dep)) -> ProxyGateway:
    """Get or create the proxy gateway singleton."""
    global _proxy_gateway
    if _proxy_gateway is None:
        _proxy_gateway = ProxyGateway(
            target=settings.backend_api_url,
            timeout_s=settings.proxy_timeout_s,
        )
    return _proxy_gateway


async def shutdown_dependencies() -> None:
    """Stop background work and release clients held by the singletons."""
    if _chaos_controller is not None:
        _chaos_controller.shutdown()
    if _proxy_gateway is not None:
        await _proxy_gateway.close()


def reset_dependencies() -> None:
    """Drop all singletons so the next request builds fresh ones."""
    global _lifecycle_state, _chaos_controller, _proxy_gateway
    if _chaos_controller is not None:
        _chaos_controller.shutdown()
    _lifecycle_state = None
    _chaos_controller = None
    _proxy_gateway = None
