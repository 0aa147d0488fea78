"""
Database Layer - Public API

This module provides the public interface for all database operations.
It imports and re-exports functions from domain-specific modules.

Usage:
    from database import get_session, get_user_banks
    # or
    import database

Organization:
    - base.py: Engine, session factory and schema creation
    - users.py: User accounts
    - budgets.py: Monthly budgets
    - banks.py: Plaid bank connections
    - categorizations.py: Transaction categorizations and manual review queue
"""

# Core connection utilities (always available)
from .base import Base, dialect_insert, engine, get_session, init_db

# Bank connections
from .banks import delete_user_bank, get_user_bank, get_user_banks, save_user_bank

# Budgets
from .budgets import delete_budget, get_budgets_for_month, upsert_budget

# Categorizations & manual review
from .categorizations import (
    get_categorizations,
    get_categorized_transaction_ids,
    get_manual_review_transaction_ids,
    get_manual_review_transactions,
    insert_categorization_if_absent,
    insert_manual_review_if_absent,
    upsert_categorization,
)

# Users
from .users import (
    get_user_by_id,
    get_user_by_username,
    insert_user,
    update_user_last_login,
    user_exists,
)

__all__ = [
    "Base",
    "engine",
    "get_session",
    "dialect_insert",
    "init_db",
    "save_user_bank",
    "get_user_banks",
    "get_user_bank",
    "delete_user_bank",
    "get_budgets_for_month",
    "upsert_budget",
    "delete_budget",
    "get_categorized_transaction_ids",
    "get_manual_review_transaction_ids",
    "insert_categorization_if_absent",
    "insert_manual_review_if_absent",
    "upsert_categorization",
    "get_categorizations",
    "get_manual_review_transactions",
    "insert_user",
    "get_user_by_id",
    "get_user_by_username",
    "user_exists",
    "update_user_last_login",
]
