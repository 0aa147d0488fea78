# backend/database/models/budget.py
"""
Budget model - monthly spending limits per category.

Maps to:
- budgets table
"""

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.sql import func

from database.base import Base


class Budget(Base):
    """One spending limit per (user, category, month)."""

    __tablename__ = "budgets"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    category = Column(String(100), nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    month = Column(String(7), nullable=False)  # YYYY-MM
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        UniqueConstraint(
            "user_id", "category", "month", name="budgets_user_category_month_key"
        ),
        Index("idx_budgets_user_id", "user_id"),
        Index("idx_budgets_month", "month"),
    )

    def __repr__(self) -> str:
        return f"<Budget(id={self.id}, category={self.category}, month={self.month})>"
