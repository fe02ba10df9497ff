"""
Application configuration.

Settings come from environment variables (and a local .env file).
The teller code, JWT secret and identity admin token have no
safe defaults for production; set them per deployment.
"""

import os
from functools import lru_cache

from dotenv import load_dotenv

# Load .env file into environment variables
load_dotenv()


class Settings:
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Teller Ledger"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Server
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8000"))

    # Environment
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")

    # Database
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        "postgresql://localhost:5432/teller_ledger"
    )

    # Branch staff gate
    TELLER_CODE: str = os.getenv("TELLER_CODE", "0612")

    # Customer bearer tokens (HS256, shared with the identity provider)
    JWT_SECRET: str = os.getenv("JWT_SECRET", "")

    # Identity provider admin API
    IDENTITY_API_URL: str = os.getenv("IDENTITY_API_URL", "")
    IDENTITY_ADMIN_TOKEN: str = os.getenv("IDENTITY_ADMIN_TOKEN", "")
    IDENTITY_TIMEOUT: float = float(os.getenv("IDENTITY_TIMEOUT", "5.0"))

    # Credentials
    PIN_HASH_ITERATIONS: int = int(os.getenv("PIN_HASH_ITERATIONS", "120000"))
    CARD_BIN: str = os.getenv("CARD_BIN", "941012")

    # Limit-account ceilings, in won
    LIMIT_ACCOUNT_PER_TXN: int = int(os.getenv("LIMIT_ACCOUNT_PER_TXN", "300000"))
    LIMIT_ACCOUNT_DAILY: int = int(os.getenv("LIMIT_ACCOUNT_DAILY", "1000000"))


@lru_cache()
def get_settings() -> Settings:
    """Return the process-wide Settings, built on first use."""
    return Settings()
