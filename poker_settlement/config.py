"""
Application configuration.

All configuration is loaded from environment variables.
Never hardcode secrets or connection strings in code.
"""

import os
from decimal import Decimal
from functools import lru_cache

from dotenv import load_dotenv

# Load .env file into environment variables
load_dotenv()


class Settings:
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Poker Settlement Engine"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Server
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8000"))

    # Database
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        "postgresql://localhost:5432/poker_settlement"
    )

    # Environment
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")

    # Money rules
    SETTLEMENT_TOLERANCE: Decimal = Decimal(
        os.getenv("SETTLEMENT_TOLERANCE", "0.01")
    )
    MAX_TRANSACTION_AMOUNT: Decimal = Decimal(
        os.getenv("MAX_TRANSACTION_AMOUNT", "10000.00")
    )
    MAX_SETTLEMENT_AMOUNT: Decimal = Decimal(
        os.getenv("MAX_SETTLEMENT_AMOUNT", "5000.00")
    )

    # Concurrency
    # A lock older than this is considered abandoned and may be taken over.
    SETTLEMENT_LOCK_TIMEOUT_SECONDS: int = int(
        os.getenv("SETTLEMENT_LOCK_TIMEOUT_SECONDS", "30")
    )

    # Audit
    AUDIT_HISTORY_DEFAULT_LIMIT: int = int(
        os.getenv("AUDIT_HISTORY_DEFAULT_LIMIT", "50")
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Return cached settings instance.

    The Settings object is created once and reused for all
    subsequent calls.
    """
    return Settings()
