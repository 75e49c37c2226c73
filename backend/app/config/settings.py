"""
Application Settings for the Billing Engine

Centralized configuration using Pydantic Settings with .env support.
All environment variables are validated at startup.
"""

from functools import lru_cache
from typing import Optional
from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    MamoPay and SendGrid credentials are optional: without them the
    reconciliation lookup and renewal emails are skipped and logged.
    """

    # Application Settings
    app_name: str = "digitalsite-billing"
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    # CORS Configuration
    frontend_url: str = "http://localhost:5173"
    allowed_origins: list[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
        "http://127.0.0.1:5173",
    ]

    # Database Configuration (SQLModel/SQLAlchemy)
    database_url: Optional[str] = None
    database_pool_size: int = 5
    database_max_overflow: int = 10
    database_pool_timeout: int = 30
    database_echo: bool = False

    # MamoPay (payment gateway) Configuration
    mamopay_api_url: str = "https://business.mamopay.com/manage_api/v1"
    mamopay_api_key: Optional[str] = None
    mamopay_timeout_seconds: float = 10.0

    # SendGrid (transactional email) Configuration
    sendgrid_api_url: str = "https://api.sendgrid.com/v3/mail/send"
    sendgrid_api_key: Optional[str] = None
    sendgrid_from_email: str = "noreply@digitalsite.com"
    sendgrid_from_name: str = "Digitalsite"
    sendgrid_sandbox: bool = False
    email_timeout_seconds: float = 10.0

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode="after")
    def normalize_urls(self) -> "Settings":
        """Strip trailing slashes so endpoint paths can be appended."""
        self.mamopay_api_url = self.mamopay_api_url.rstrip("/")
        return self

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment.lower() == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development."""
        return self.environment.lower() == "development"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Convenience export for direct import
settings = get_settings()
