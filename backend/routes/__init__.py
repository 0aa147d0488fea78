"""Routes package for API endpoints."""

from routes.auth import auth_bp
from routes.budgets import budgets_bp
from routes.health import health_bp
from routes.plaid import plaid_bp

__all__ = [
    "auth_bp",
    "budgets_bp",
    "health_bp",
    "plaid_bp",
]
