"""
Application configuration using Pydantic settings.

Configuration is loaded from environment variables with sensible defaults.
Using Pydantic's BaseSettings means we get:
- Type validation at startup (fail fast if config is wrong)
- Documentation of what's required vs optional
- Easy testing with different configurations

The nudge webhook and the automation secret keep their historical
N8N_* environment names as aliases so existing deployments keep working.
"""

from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    For lists (like cors_origins), use comma-separated values in env.
    """

    # API Configuration
    api_title: str = "Leadership Canvas API"
    api_version: str = "v1"

    # Database Configuration
    database_url: str = Field(
        default="sqlite:///./leadership_canvas.db",
        description="SQLAlchemy database URL for the relational store."
    )
    database_echo: bool = Field(
        default=False,
        description="Log every SQL statement. Development only."
    )
    database_auto_create: bool = Field(
        default=True,
        description="Create missing tables on startup."
    )

    # Session Configuration
    session_jwt_secret: str = Field(
        default="",
        description="Shared secret the auth provider signs session tokens with (HS256)."
    )
    session_jwt_algorithm: str = Field(
        default="HS256",
        description="Signing algorithm of session tokens."
    )
    session_jwt_audience: str = Field(
        default="authenticated",
        description="Expected 'aud' claim. Empty string disables the audience check."
    )
    session_expires_minutes: int = Field(
        default=60,
        description="Lifetime of session tokens re-issued by the refresh path."
    )
    session_refresh_window_minutes: int = Field(
        default=10,
        description="Cookie sessions this close to expiry are re-issued transparently."
    )
    session_cookie_name: str = Field(
        default="canvas-session",
        description="Cookie carrying the session token for browser clients."
    )

    # Nudge Delivery
    nudge_webhook_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("nudge_webhook_url", "n8n_send_nudge_webhook"),
        description="Where recorded nudges are forwarded. Unset means record-only."
    )
    nudge_webhook_timeout_seconds: float = Field(
        default=10.0,
        description="Timeout for the single webhook attempt."
    )
    automation_api_secret: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("automation_api_secret", "n8n_api_secret"),
        description="Bearer secret for the scheduled weekly-nudge endpoints."
    )

    # Role migration
    coach_seed_emails: str = Field(
        default="",
        description="Comma-separated emails promoted to coach by the one-time migration script."
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000",
        description="Comma-separated list of allowed CORS origins. Use * for development only."
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def coach_seed_emails_list(self) -> list[str]:
        """Parse comma-separated seed emails into a normalized list."""
        return [email.strip().lower() for email in self.coach_seed_emails.split(",") if email.strip()]

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    def validate_required_fields(self) -> list[str]:
        """
        Return the names of required settings that are missing.

        The webhook URL and automation secret are optional on purpose:
        without them nudges are record-only and the scheduled endpoints
        answer 500.
        """
        missing = []

        if not self.session_jwt_secret:
            missing.append("SESSION_JWT_SECRET")

        if not self.database_url:
            missing.append("DATABASE_URL")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache means we only load settings once per process.
    For tests, you can call get_settings.cache_clear() to reset.
    """
    return Settings()
