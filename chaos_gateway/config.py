"""
Configuration management for the chaos gateway.

Uses pydantic-settings for type-safe environment variable handling.
Variable names match the container environment the gateway is deployed with
(BACKEND_API_URL, PORT, NODE_ENV), so no prefix is applied.
"""

from enum import Enum
from functools import lru_cache
from urllib.parse import urlsplit

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppEnvironment(str, Enum):
    """Application environment (operating mode)."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TEST = "test"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Every field has a default so the gateway starts with an empty environment.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Operating mode
    env: AppEnvironment = Field(
        default=AppEnvironment.DEVELOPMENT,
        alias="NODE_ENV",
        description="Operating mode",
    )
    service_name: str = Field(
        default="frontend",
        alias="SERVICE_NAME",
        description="Service name reported by health probes",
    )

    # Server configuration
    host: str = Field(default="0.0.0.0", alias="HOST", description="Server host")
    port: int = Field(default=3000, ge=1, le=65535, alias="PORT", description="Server port")

    # Logging
    log_level: str = Field(
        default="INFO",
        alias="LOG_LEVEL",
        description="Logging level",
    )

    # Backend / proxy
    backend_api_url: str = Field(
        default="http://localhost:8080",
        alias="BACKEND_API_URL",
        description="Base URL of the backend that /api requests are forwarded to",
    )
    proxy_timeout_s: float = Field(
        default=30.0,
        alias="PROXY_TIMEOUT_S",
        description="Timeout for connecting to and reading from the backend",
        gt=0,
        le=600,
    )
    max_body_bytes: int = Field(
        default=10 * 1024,
        alias="MAX_BODY_BYTES",
        description="Maximum declared request body size",
        ge=0,
    )
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
        description="Allowed CORS origins",
    )

    # Backend startup probe
    backend_probe_enabled: bool = Field(
        default=True,
        alias="BACKEND_PROBE_ENABLED",
        description="Probe the backend once after startup",
    )
    backend_probe_delay_s: float = Field(
        default=2.0,
        alias="BACKEND_PROBE_DELAY_S",
        description="Delay before the startup probe runs",
        ge=0,
    )
    backend_probe_path: str = Field(
        default="/actuator/health",
        alias="BACKEND_PROBE_PATH",
        description="Backend path hit by the startup probe",
    )
    backend_probe_timeout_s: float = Field(
        default=5.0,
        alias="BACKEND_PROBE_TIMEOUT_S",
        description="Startup probe timeout",
        gt=0,
    )

    # Chaos: crash
    crash_countdown_s: int = Field(
        default=3,
        alias="CRASH_COUNTDOWN_S",
        description="Seconds between a crash request and process termination",
        ge=0,
        le=60,
    )

    # Chaos: overload
    overload_period_ms: int = Field(
        default=100,
        alias="OVERLOAD_PERIOD_MS",
        description="Interval between stress ticks",
        ge=1,
    )
    overload_burn_ms: int = Field(
        default=500,
        alias="OVERLOAD_BURN_MS",
        description="CPU burn duration per stress tick",
        ge=0,
    )
    overload_alloc_volume: int = Field(
        default=100_000,
        alias="OVERLOAD_ALLOC_VOLUME",
        description="Composite values allocated per stress tick",
        ge=0,
    )
    overload_retain_ms: int = Field(
        default=200,
        alias="OVERLOAD_RETAIN_MS",
        description="How long each tick's allocations are retained",
        ge=0,
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return upper_v

    @field_validator("backend_api_url")
    @classmethod
    def validate_backend_url(cls, v: str) -> str:
        """Require an absolute http(s) URL and drop any trailing slash."""
        parts = urlsplit(v)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise ValueError(f"BACKEND_API_URL must be an absolute http(s) URL, got {v!r}")
        return v.rstrip("/")

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.env == AppEnvironment.PRODUCTION

    def get_redacted_config(self) -> dict[str, str | int | bool | float]:
        """
        Get configuration dict safe for logging.
        """
        return {
            "env": self.env.value,
            "host": self.host,
            "port": self.port,
            "log_level": self.log_level,
            "backend_api_url": self.backend_api_url,
            "proxy_timeout_s": self.proxy_timeout_s,
            "service_name": self.service_name,
        }


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure single instance throughout application.
    """
    return Settings()


def get_settings_dep() -> Settings:
    """
    Dependency for FastAPI routes to get settings.
    Allows for easy dependency override in tests.
    """
    return get_settings()
