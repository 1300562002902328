from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="UIFORGE_", env_file=".env", extra="ignore", populate_by_name=True
    )

    app_name: str = "uiforge"
    env: str = "dev"
    host: str = "0.0.0.0"  # nosec B104 - intentional for container deployments
    port: int = 8080

    # Redis (absent URL means in-process cache only)
    redis_url: str | None = Field(default=None, validation_alias="REDIS_URL")
    redis_connect_timeout: float = Field(default=5.0, validation_alias="REDIS_CONNECT_TIMEOUT")
    redis_max_reconnect_attempts: int = Field(
        default=3, validation_alias="REDIS_MAX_RECONNECT_ATTEMPTS"
    )
    redis_reconnect_delay_step: float = Field(
        default=0.1, validation_alias="REDIS_RECONNECT_DELAY_STEP"
    )
    redis_reconnect_delay_max: float = Field(
        default=3.0, validation_alias="REDIS_RECONNECT_DELAY_MAX"
    )
    # Hosted Redis endpoints that require TLS
    redis_tls_hosts: str = Field(default="upstash.io", validation_alias="REDIS_TLS_HOSTS")

    # Cache
    cache_default_ttl: int = Field(default=3600, validation_alias="CACHE_DEFAULT_TTL")

    # Observability
    enable_metrics: bool = Field(default=True, validation_alias="ENABLE_METRICS")
    log_level: str = "INFO"

    @field_validator("redis_url", mode="before")
    @classmethod
    def _blank_url_is_none(cls, value: str | None) -> str | None:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def redis_tls_host_list(self) -> list[str]:
        """Managed host suffixes parsed from the comma-separated setting."""
        return [h.strip() for h in self.redis_tls_hosts.split(",") if h.strip()]


settings = Settings()
