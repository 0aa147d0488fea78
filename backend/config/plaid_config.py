"""
Plaid & Ingestion Configuration
Handles environment variables, validation, and provider configuration
"""

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from dotenv import load_dotenv

# Load from .env in the backend directory (Docker env vars take precedence)
load_dotenv(Path(__file__).parent.parent / ".env", override=False)


class PlaidEnvironment(str, Enum):
    """Plaid API environments"""
    SANDBOX = "sandbox"
    DEVELOPMENT = "development"
    PRODUCTION = "production"


PLAID_BASE_URLS = {
    PlaidEnvironment.SANDBOX: "https://sandbox.plaid.com",
    PlaidEnvironment.DEVELOPMENT: "https://development.plaid.com",
    PlaidEnvironment.PRODUCTION: "https://production.plaid.com",
}


def _csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class PlaidConfig:
    """Plaid API configuration object"""
    client_id: str
    secret: str
    environment: PlaidEnvironment = PlaidEnvironment.SANDBOX
    client_name: str = "Budget App"
    products: list[str] = field(default_factory=lambda: ["transactions", "investments"])
    country_codes: list[str] = field(default_factory=lambda: ["CA"])
    language: str = "en"
    timeout: int = 10
    max_retries: int = 3

    def __post_init__(self):
        """Validate configuration after initialization"""
        self.validate()

    @property
    def base_url(self) -> str:
        return PLAID_BASE_URLS[self.environment]

    def validate(self):
        """Validate Plaid configuration"""
        if not self.client_id:
            raise ValueError("PLAID_CLIENT_ID is required")

        if not self.secret:
            raise ValueError("PLAID_SECRET is required")

        if self.timeout <= 0:
            raise ValueError("PLAID_TIMEOUT must be greater than 0")

        if self.max_retries < 1:
            raise ValueError("PLAID_MAX_RETRIES must be at least 1")

        if not self.products:
            raise ValueError("PLAID_PRODUCTS must name at least one product")


@dataclass
class IngestionConfig:
    """Transaction ingestion tuning"""
    max_workers: int = 8
    default_lookback_days: int = 30

    def __post_init__(self):
        if self.max_workers <= 0:
            raise ValueError("INGEST_MAX_WORKERS must be greater than 0")
        if self.default_lookback_days <= 0:
            raise ValueError("INGEST_LOOKBACK_DAYS must be greater than 0")


def get_plaid_environment() -> PlaidEnvironment:
    """Resolve PLAID_ENV, rejecting unknown environment names."""
    env_str = os.getenv("PLAID_ENV", PlaidEnvironment.SANDBOX.value).strip().lower()
    try:
        return PlaidEnvironment(env_str)
    except ValueError:
        raise ValueError(
            f"Invalid PLAID_ENV: {env_str}. "
            f"Must be one of: {', '.join([e.value for e in PlaidEnvironment])}"
        )


def load_plaid_config() -> PlaidConfig:
    """
    Load Plaid configuration from environment variables.

    Environment Variables:
    - PLAID_CLIENT_ID: Plaid client ID (required)
    - PLAID_SECRET: Plaid secret for the selected environment (required)
    - PLAID_ENV: sandbox|development|production (default: sandbox)
    - PLAID_CLIENT_NAME: Name shown in Plaid Link (default: Budget App)
    - PLAID_PRODUCTS: Comma-separated products (default: transactions,investments)
    - PLAID_COUNTRY_CODES: Comma-separated country codes (default: CA)
    - PLAID_LANGUAGE: Link language (default: en)
    - PLAID_TIMEOUT: Request timeout in seconds (default: 10)
    - PLAID_MAX_RETRIES: Attempts on rate limiting (default: 3)

    Returns:
        PlaidConfig object

    Raises:
        ValueError: If required variables are missing or invalid
    """
    return PlaidConfig(
        client_id=os.getenv("PLAID_CLIENT_ID", "").strip(),
        secret=os.getenv("PLAID_SECRET", "").strip(),
        environment=get_plaid_environment(),
        client_name=os.getenv("PLAID_CLIENT_NAME", "Budget App"),
        products=_csv(os.getenv("PLAID_PRODUCTS", "transactions,investments")),
        country_codes=_csv(os.getenv("PLAID_COUNTRY_CODES", "CA")),
        language=os.getenv("PLAID_LANGUAGE", "en"),
        timeout=int(os.getenv("PLAID_TIMEOUT", "10")),
        max_retries=int(os.getenv("PLAID_MAX_RETRIES", "3")),
    )


def load_ingestion_config() -> IngestionConfig:
    """
    Load ingestion configuration from environment variables.

    Environment Variables:
    - INGEST_MAX_WORKERS: Thread pool size for lookups and upserts (default: 8)
    - INGEST_LOOKBACK_DAYS: Default transaction window in days (default: 30)
    """
    return IngestionConfig(
        max_workers=int(os.getenv("INGEST_MAX_WORKERS", "8")),
        default_lookback_days=int(os.getenv("INGEST_LOOKBACK_DAYS", "30")),
    )
