"""
Services Package - Business Logic Layer

This package contains service modules that encapsulate business logic,
separating it from HTTP routing concerns.

Services can be called from:
- Flask routes (HTTP requests)
- Tests

Available services:
- reconciliation_service: Transaction auto-categorization and manual review
- plaid_service: Plaid bank integration orchestration
- budgets_service: Monthly category budgets
"""

from . import reconciliation_service, plaid_service, budgets_service

__all__ = [
    'reconciliation_service',
    'plaid_service',
    'budgets_service',
]
