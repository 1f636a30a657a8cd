"""
Application configuration using Pydantic Settings.

All configuration is loaded from environment variables, with an optional .env file
as a fallback. Pydantic Settings resolves values in this order:
  1. Environment variables (highest priority)
  2. .env file values
  3. Defaults defined here (lowest priority)

Usage:
    from otpbank.config import settings
    print(settings.SESSION_TTL_MINUTES)
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Central configuration for the OTP Bank API.

    Every field has a default, so the service boots with no environment at
    all (local SQLite file, 10-minute sessions).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # --- Application ---
    APP_NAME: str = "OTP Bank API"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # --- Database ---
    # SQLite for local runs; swap to a postgresql+asyncpg URL for production
    DATABASE_URL: str = "sqlite+aiosqlite:///./data/bank.db"
    # Seconds to wait for a pooled connection before giving up
    DB_POOL_TIMEOUT: float = 30.0

    # --- Sessions ---
    OTP_LENGTH: int = 6
    SESSION_TTL_MINUTES: int = 10
    SESSION_SWEEP_INTERVAL_SECONDS: float = 600.0

    # --- CORS ---
    ALLOWED_ORIGINS: list[str] = ["http://localhost:3000"]


# Singleton: import this instance everywhere instead of creating new Settings()
settings = Settings()
