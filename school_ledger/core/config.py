"""Application settings."""

from decimal import Decimal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration."""

    APP_NAME: str = "School Ledger"
    DEBUG: bool = False

    # API
    API_V1_PREFIX: str = "/api/v1"

    # Billing tolerances
    PAID_EPSILON: Decimal = Decimal("1")  # Shortfall still counted as fully paid
    DEBT_TOLERANCE: Decimal = Decimal("500")  # Yearly shortfall allowed before blocking renewal
    DEFAULT_PAYMENT_LIMIT_DAY: int = 10

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
