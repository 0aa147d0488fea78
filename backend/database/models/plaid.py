"""
Plaid integration models for bank connections and transaction classification.

Maps to:
- user_banks table
- transaction_categorizations table
- manual_review_transactions table

A (user_id, transaction_id) pair lives in at most one of
transaction_categorizations / manual_review_transactions in steady state.
"""

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func

from database.base import Base

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONPayload = JSON().with_variant(JSONB(), "postgresql")


class UserBank(Base):
    """Plaid Items (bank logins) linked by a user."""

    __tablename__ = "user_banks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    item_id = Column(String(255), nullable=False)
    access_token = Column(String(500), nullable=False)  # ENCRYPTED
    institution_name = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        UniqueConstraint("user_id", "item_id", name="user_banks_user_id_item_id_key"),
        Index("idx_user_banks_user_id", "user_id"),
    )

    def __repr__(self) -> str:
        return f"<UserBank(id={self.id}, item_id={self.item_id})>"


class TransactionCategorization(Base):
    """Definitive category for a provider transaction."""

    __tablename__ = "transaction_categorizations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    transaction_id = Column(String(255), nullable=False)
    category = Column(String(100), nullable=False)
    source_data = Column(JSONPayload, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint(
            "user_id",
            "transaction_id",
            name="transaction_categorizations_user_id_transaction_id_key",
        ),
    )

    def __repr__(self) -> str:
        return f"<TransactionCategorization(transaction_id={self.transaction_id}, category={self.category})>"


class ManualReviewTransaction(Base):
    """Transaction awaiting a user-assigned category."""

    __tablename__ = "manual_review_transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    transaction_id = Column(String(255), nullable=False)
    transaction_data = Column(JSONPayload, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint(
            "user_id",
            "transaction_id",
            name="manual_review_transactions_user_id_transaction_id_key",
        ),
        Index("idx_manual_review_user_created", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<ManualReviewTransaction(transaction_id={self.transaction_id})>"
