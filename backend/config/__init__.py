"""Backend configuration module"""

from .plaid_config import (
    IngestionConfig,
    PlaidConfig,
    PlaidEnvironment,
    get_plaid_environment,
    load_ingestion_config,
    load_plaid_config,
)

__all__ = [
    "IngestionConfig",
    "PlaidConfig",
    "PlaidEnvironment",
    "get_plaid_environment",
    "load_ingestion_config",
    "load_plaid_config",
]
