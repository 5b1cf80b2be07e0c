# ABOUTME: Centralized configuration using Pydantic Settings.
# ABOUTME: Loads email provider, contact store, dispatch, and web settings from env and .env file.

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

PACKAGE_DIR = Path(__file__).parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Site
    site_name: str = "Continued Education"
    app_base_url: str = "http://localhost:8000"  # Base URL for post and unsubscribe links

    # Email / Resend (optional - without an API key notifications are disabled)
    resend_api_key: SecretStr | None = None
    resend_audience_id: str | None = None
    sender_email: str = "noreply@continued-education.blog"
    sender_name: str = "Continued Education"
    broadcast_unsubscribe_placeholder: str = "{{{RESEND_UNSUBSCRIBE_URL}}}"
    templates_dir: Path = PACKAGE_DIR / "email" / "templates"

    # Contact store
    contact_backend: Literal["database", "audience"] = "database"

    # Database (only used by the "database" contact backend)
    database_url: str = "sqlite+aiosqlite:///./continued_education.db"
    db_pool_size: int = 5
    db_pool_max_overflow: int = 10

    # Notification dispatch
    dispatch_batch_size: int = 10
    dispatch_batch_delay: float = 1.0  # Seconds between batches

    # Admin
    admin_api_key: SecretStr | None = None  # Bearer token for /admin routes
    csv_date_format: str = "%x"

    # Logging
    log_level: str = "INFO"
    log_format: str = "console"  # "console" or "json"

    @property
    def sender(self) -> str:
        """Formatted From header value."""
        return f"{self.sender_name} <{self.sender_email}>"

    @property
    def email_enabled(self) -> bool:
        """True when a Resend API key is configured."""
        return bool(self.resend_api_key and self.resend_api_key.get_secret_value())

    @property
    def base_url(self) -> str:
        """App base URL without trailing slash."""
        return self.app_base_url.rstrip("/")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Settings are loaded from environment variables and .env file.
    The Resend key and audience id are optional - only required for sending
    and for the "audience" contact backend.
    """
    return Settings()
