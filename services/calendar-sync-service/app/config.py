"""Configuration for Calendar Sync Service."""

from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Calendar sync service configuration.

    All settings can be overridden via environment variables.
    """

    # Service configuration
    SERVICE_NAME: str = Field(default="calendar-sync-service")
    SERVICE_VERSION: str = Field(default="1.0.0")
    SERVICE_HOST: str = Field(default="0.0.0.0")
    SERVICE_PORT: int = Field(default=8050, ge=1, le=65535)
    DEBUG: bool = Field(default=False)
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO"
    )

    # Supabase (identity provider and managed database)
    SUPABASE_URL: str = Field(default="")
    SUPABASE_SERVICE_KEY: str = Field(default="")

    # Google OAuth client and Calendar API
    GOOGLE_CLIENT_ID: str = Field(default="")
    GOOGLE_CLIENT_SECRET: str = Field(default="")
    GOOGLE_TOKEN_URL: str = Field(default="https://oauth2.googleapis.com/token")
    GOOGLE_CALENDAR_API_BASE: str = Field(
        default="https://www.googleapis.com/calendar/v3"
    )
    GOOGLE_CALENDAR_ID: str = Field(default="primary")
    GOOGLE_REQUEST_TIMEOUT: float = Field(default=15.0, gt=0)
    DEFAULT_TOKEN_LIFETIME_SECONDS: int = Field(default=3600, ge=60)

    # Sync window
    SYNC_WINDOW_DAYS: int = Field(default=30, ge=1, le=365)
    SYNC_MAX_RESULTS: int = Field(default=50, ge=1, le=2500)
    SYNC_MAX_PAGES: int = Field(default=5, ge=1)

    # Reminders
    REMINDER_LOOKAHEAD_MINUTES: int = Field(default=60, ge=1)
    DEFAULT_REMINDER_MINUTES: int = Field(default=15, ge=0)
    REMINDER_CHANNEL: Literal["log", "email"] = Field(default="log")
    REMINDER_TRIGGER_TOKEN: Optional[str] = Field(default=None)

    # Email Configuration (Resend)
    RESEND_API_KEY: str = Field(default="")
    RESEND_FROM_EMAIL: str = Field(default="reminders@example.com")
    RESEND_FROM_NAME: str = Field(default="Calendar Reminders")

    # CORS
    CORS_ORIGINS: str = Field(default="http://localhost:8080,http://localhost:5173")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins string into list."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def supabase_configured(self) -> bool:
        """Check if Supabase credentials are present."""
        return bool(self.SUPABASE_URL and self.SUPABASE_SERVICE_KEY)

    @property
    def google_configured(self) -> bool:
        """Check if Google OAuth client credentials are present."""
        return bool(self.GOOGLE_CLIENT_ID and self.GOOGLE_CLIENT_SECRET)


settings = Settings()
