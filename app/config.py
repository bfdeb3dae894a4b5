"""
Companion Marketplace — Application Configuration

Loads all configuration from environment variables (and an optional .env file)
using Pydantic Settings.  A cached ``get_settings()`` helper is provided so that
FastAPI dependency-injection (and any other call-site) always receives the same
validated instance without re-parsing the environment on every request.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration for the marketplace API."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------ #
    # Database – Cloud SQL via Unix socket or plain DATABASE_URL
    # ------------------------------------------------------------------ #
    DATABASE_URL: str
    DB_USER: str = "marketplace_user"
    DB_PASSWORD: str = ""
    DB_NAME: str = "marketplace"
    CLOUD_SQL_INSTANCE_CONNECTION: str = ""
    CLOUD_SQL_USE_UNIX_SOCKET: bool = False

    # ------------------------------------------------------------------ #
    # Security
    # ------------------------------------------------------------------ #
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7
    PASSWORD_RESET_EXPIRE_MINUTES: int = 60

    # ------------------------------------------------------------------ #
    # Payments (mock gateway)
    # ------------------------------------------------------------------ #
    PAYMENT_CURRENCY: str = "AUD"
    PAYMENT_MOCK_SUCCESS_RATE: float = 0.9
    PAYMENT_RECEIPT_BASE_URL: str = "https://receipts.angelclass.com"
    SUBSCRIPTION_TERM_DAYS: int = 30

    # ------------------------------------------------------------------ #
    # Google Cloud Storage (media uploads)
    # ------------------------------------------------------------------ #
    GCP_PROJECT_ID: str = ""
    GCS_BUCKET_NAME: str = ""

    # ------------------------------------------------------------------ #
    # Runtime environment
    # ------------------------------------------------------------------ #
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    REQUEST_TIMEOUT_SECONDS: float = 30.0

    # ------------------------------------------------------------------ #
    # CORS
    # ------------------------------------------------------------------ #
    ALLOWED_ORIGINS: str = "*"

    # ------------------------------------------------------------------ #
    # Derived helpers
    # ------------------------------------------------------------------ #
    @property
    def allowed_origins_list(self) -> list[str]:
        """Return ALLOWED_ORIGINS as a list split on commas."""
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",")]

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @field_validator("PAYMENT_MOCK_SUCCESS_RATE")
    @classmethod
    def _rate_must_be_between_0_and_1(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"Success rate must be between 0 and 1, got {v}")
        return v


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached, validated ``Settings`` instance.

    Using ``@lru_cache`` guarantees the .env file is read and validated
    exactly once per process lifetime.  Import this function anywhere you
    need access to configuration::

        from app.config import get_settings
        settings = get_settings()
    """
    return Settings()  # type: ignore[call-arg]
