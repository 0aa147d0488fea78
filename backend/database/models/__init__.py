# backend/database/models/__init__.py
"""SQLAlchemy models for all database tables."""

from .budget import Budget
from .plaid import ManualReviewTransaction, TransactionCategorization, UserBank
from .user import User

__all__ = [
    "User",
    "Budget",
    "UserBank",
    "TransactionCategorization",
    "ManualReviewTransaction",
]
