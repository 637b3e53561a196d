"""
Pytest configuration and shared fixtures.
"""

import os
from collections.abc import Generator

import pytest

# Set test environment variables before importing app modules
os.environ.setdefault("NODE_ENV", "test")
os.environ.setdefault("BACKEND_PROBE_ENABLED", "false")
os.environ.setdefault("BACKEND_API_URL", "http://backend.test:8080")

# Import shared fixtures from api_fixtures
from tests.api_fixtures import *  # noqa: E402, F403


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep local overload tuning out of tests."""
    for var in (
        "OVERLOAD_PERIOD_MS",
        "OVERLOAD_BURN_MS",
        "OVERLOAD_ALLOC_VOLUME",
        "OVERLOAD_RETAIN_MS",
        "CRASH_COUNTDOWN_S",
    ):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture(autouse=True)
def reset_singletons() -> Generator[None, None, None]:
    """Reset dependency singletons between tests."""
    yield

    from chaos_gateway.api.deps import reset_dependencies

    reset_dependencies()
