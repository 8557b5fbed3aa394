"""Application configuration using Pydantic Settings.

This module provides centralized configuration management with environment
variable validation, type coercion, and default values. Upstream credentials
are read once at startup and stay fixed for the process lifetime.
"""

from collections.abc import Mapping
from enum import Enum
from functools import lru_cache
from types import MappingProxyType

import httpx
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from statsproxy.sites import DEPLOYMENT_PORTS, WEBSITE_TABLES, Deployment


class Environment(str, Enum):
    """Application environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class LogLevel(str, Enum):
    """Log level options."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log format options."""

    JSON = "json"
    CONSOLE = "console"


class Settings(BaseSettings):
    """Application settings with environment variable validation.

    All settings can be overridden via environment variables.
    Upstream credentials should be provided via environment variables or .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Application
    # ========================================
    app_env: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )
    app_name: str = Field(
        default="StatsProxy",
        description="Application name",
    )
    app_version: str = Field(
        default="0.1.0",
        description="Application version",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Logging level",
    )
    log_format: LogFormat = Field(
        default=LogFormat.CONSOLE,
        description="Log output format (json for production, console for dev)",
    )

    # ========================================
    # Server
    # ========================================
    host: str = Field(
        default="0.0.0.0",
        description="Server host",
    )
    port: int | None = Field(
        default=None,
        ge=1,
        le=65535,
        description="Server port (defaults to the deployment's port)",
    )
    deployment: Deployment = Field(
        default=Deployment.PRIMARY,
        description="Deployment instance, selects alias table and default port",
    )
    cors_origins: list[str] = Field(
        default_factory=lambda: ["*"],
        description="Origins allowed to call the API",
    )

    # ========================================
    # Upstream analytics
    # ========================================
    analytics_base_url: str = Field(
        default="",
        description="Base URL of the upstream analytics service",
    )
    analytics_username: str = Field(
        default="",
        description="Username used to log in to the analytics service",
    )
    analytics_password: SecretStr = Field(
        default=SecretStr(""),
        description="Password used to log in to the analytics service",
    )
    analytics_timeout: float = Field(
        default=10.0,
        gt=0,
        description="Upstream request timeout in seconds",
    )

    # ========================================
    # Visitor data
    # ========================================
    cache_ttl_seconds: float = Field(
        default=30.0,
        gt=0,
        description="How long a fetched stats payload is served from cache",
    )
    auth_retry_budget: int = Field(
        default=1,
        ge=0,
        description="Re-login attempts allowed per request after a 401",
    )
    default_website: str = Field(
        default="codefe",
        description="Alias used when the request names no website",
    )
    website_ids: dict[str, str] | None = Field(
        default=None,
        description="Alias to website id override (JSON); replaces the built-in table",
    )

    # ========================================
    # Derived Properties
    # ========================================
    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env == Environment.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env == Environment.PRODUCTION

    @property
    def use_json_logs(self) -> bool:
        """Check if JSON logging should be used."""
        return self.log_format == LogFormat.JSON or self.is_production

    @property
    def listen_port(self) -> int:
        """Port to bind, falling back to the deployment's fixed port."""
        if self.port is not None:
            return self.port
        return DEPLOYMENT_PORTS[self.deployment]

    @property
    def alias_table(self) -> Mapping[str, str]:
        """Alias to website id table for this deployment."""
        if self.website_ids is not None:
            return MappingProxyType(dict(self.website_ids))
        return WEBSITE_TABLES[self.deployment]

    @property
    def analytics_configured(self) -> bool:
        """Check if upstream URL and credentials are all present."""
        return bool(
            self.analytics_base_url
            and self.analytics_username
            and self.analytics_password.get_secret_value()
        )

    @field_validator("analytics_base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Require an absolute http(s) URL and drop any trailing slash.

        An empty value is allowed; readiness reports it as unconfigured.
        """
        v = v.strip().rstrip("/")
        if not v:
            return v
        try:
            url = httpx.URL(v)
        except httpx.InvalidURL as e:
            raise ValueError(f"Invalid analytics base URL: {e}") from e
        if url.scheme not in ("http", "https") or not url.host:
            raise ValueError("Analytics base URL must be an absolute http(s) URL")
        return v


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    This function is cached to avoid re-reading environment variables
    on every access. Use dependency injection in FastAPI routes.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
