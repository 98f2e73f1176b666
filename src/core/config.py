"""Application configuration using Pydantic Settings."""

from functools import lru_cache

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="Hooked API")
    app_env: str = Field(default="development")
    debug: bool = Field(default=False)

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)

    # Remote store
    database_url: str = Field(
        default="sqlite+aiosqlite:///./hooked.db",
        description="Remote document store connection URL (asyncpg or aiosqlite driver)",
    )

    # Local durable storage (session keys, drafts, offline queue)
    local_storage_url: str = Field(
        default="sqlite+aiosqlite:///./hooked_local.db",
        description="Local key/value storage URL",
    )

    # Connectivity
    reachability_url: str = Field(
        default="",
        description="URL probed to decide whether the network is reachable (empty = assume online)",
    )
    reachability_timeout_s: float = Field(default=5.0)
    connectivity_poll_interval_s: float = Field(default=10.0)

    # Retry executor
    retry_max_attempts: int = Field(default=3, ge=1)
    retry_base_delay_ms: int = Field(default=1000, ge=0)
    retry_jitter_ms: int = Field(default=1000, ge=0)
    operation_timeout_s: float = Field(default=30.0, gt=0)

    # Offline queue
    offline_queue_max_size: int = Field(default=100, ge=1)
    offline_queue_max_retries: int = Field(default=3, ge=1)
    offline_queue_settle_delay_ms: int = Field(default=1000, ge=0)

    # Discovery / sessions
    discovery_poll_interval_s: float = Field(default=60.0, gt=0)
    admin_session_hours: int = Field(default=24, ge=1)

    # Rate Limiting
    rate_limit_enabled: bool = Field(
        default=True,
        description="Enable/disable rate limiting (disable for tests)",
    )

    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        description="Comma-separated list of allowed origins",
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def async_database_url(self) -> str:
        """Ensure the database URL uses the asyncpg driver scheme.

        Hosting providers supply a standard ``postgresql://`` URL.
        SQLAlchemy's async engine requires ``postgresql+asyncpg://``.
        """
        url = self.database_url
        if url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        return url

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
