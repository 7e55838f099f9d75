"""Application configuration using Pydantic Settings."""

import logging
from functools import lru_cache
from typing import Literal

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_config_logger = logging.getLogger(__name__)

# Development-only fallback, rejected in production
INSECURE_DEV_JWT_SECRET = "kickabout-dev-secret-change-me"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra env vars not defined in the model
    )

    # App
    app_name: str = "Kickabout API"
    app_version: str = "0.1.0"
    app_env: Literal["development", "staging", "production", "test"] = "development"
    debug: bool = False
    log_level: str = "INFO"
    port: int = 8000

    # API Settings
    api_prefix: str = "/api"
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Data store
    datastore_backend: Literal["auto", "memory", "sql", "supabase"] = "auto"
    datastore_timeout: float = 15.0  # seconds, per data-store call
    database_url: str = ""

    # Supabase (hosted PostgREST)
    supabase_url: str = ""
    supabase_service_role_key: str = ""
    supabase_anon_key: str = ""

    # Sessions
    jwt_secret: str = ""
    jwt_algorithm: str = "HS256"
    session_ttl_days: int = 7
    bcrypt_rounds: int = 12

    # Rate Limiting
    rate_limit_enabled: bool = True
    rate_limit_storage_uri: str = "memory://"

    # Monitoring
    sentry_dsn: str = ""

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def session_secret(self) -> str:
        """Signing secret for session tokens (insecure fallback outside production)."""
        return self.jwt_secret or INSECURE_DEV_JWT_SECRET

    @property
    def resolved_datastore_backend(self) -> Literal["memory", "sql", "supabase"]:
        """Backend actually used once ``auto`` has been resolved."""
        if self.datastore_backend != "auto":
            return self.datastore_backend
        if self.supabase_url and self.supabase_service_role_key:
            return "supabase"
        if self.database_url:
            return "sql"
        return "memory"

    @model_validator(mode="after")
    def _validate_production_env(self) -> "Settings":
        """Validate that critical env vars are set in production."""
        if self.app_env != "production":
            if not self.jwt_secret:
                _config_logger.warning("JWT_SECRET not set - using insecure development secret")
            return self
        missing: list[str] = []
        if not self.jwt_secret:
            missing.append("JWT_SECRET")
        backend = self.resolved_datastore_backend
        if backend == "memory":
            missing.append("SUPABASE_URL/SUPABASE_SERVICE_ROLE_KEY or DATABASE_URL")
        if self.datastore_backend == "supabase" and not (
            self.supabase_url and self.supabase_service_role_key
        ):
            missing.append("SUPABASE_URL/SUPABASE_SERVICE_ROLE_KEY")
        if self.datastore_backend == "sql" and not self.database_url:
            missing.append("DATABASE_URL")
        if missing:
            raise ValueError(f"Missing required env vars for production: {', '.join(missing)}")
        if not self.sentry_dsn:
            _config_logger.warning("SENTRY_DSN not set - error monitoring disabled")
        if self.rate_limit_storage_uri == "memory://":
            _config_logger.warning(
                "RATE_LIMIT_STORAGE_URI is memory:// - limits are per worker, not shared"
            )
        return self


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
