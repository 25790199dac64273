"""Application configuration."""

import os
from zoneinfo import ZoneInfo

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    admin_token: str
    studio_timezone: str = "UTC"
    reminder_interval_seconds: float = 900
    reminders_enabled: bool = True
    email_api_key: str | None = None
    email_from: str | None = None
    email_base_url: str = "https://api.resend.com"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @property
    def email_enabled(self) -> bool:
        return bool(self.email_api_key and self.email_from)

    @property
    def tzinfo(self) -> ZoneInfo:
        """Return the studio timezone used for availability and messages."""
        return ZoneInfo(self.studio_timezone)
