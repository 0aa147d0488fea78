"""
Budgets - Database Operations

Monthly per-category spending limits. One row per (user, category, month).
"""

from sqlalchemy import func

from .base import dialect_insert, get_session
from .models.budget import Budget


def _budget_to_dict(b):
    return {
        "id": b.id,
        "user_id": b.user_id,
        "category": b.category,
        "amount": float(b.amount) if b.amount is not None else None,
        "month": b.month,
        "created_at": b.created_at.isoformat() if b.created_at else None,
        "updated_at": b.updated_at.isoformat() if b.updated_at else None,
    }


def get_budgets_for_month(user_id, month):
    """Get a user's budgets for one month, ordered by category."""
    with get_session() as session:
        budgets = (
            session.query(Budget)
            .filter(Budget.user_id == user_id, Budget.month == month)
            .order_by(Budget.category)
            .all()
        )
        return [_budget_to_dict(b) for b in budgets]


def upsert_budget(user_id, category, amount, month):
    """Create a budget or update the amount of the existing one."""
    with get_session() as session:
        stmt = dialect_insert(Budget).values(
            user_id=user_id,
            category=category,
            amount=amount,
            month=month,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id", "category", "month"],
            set_={
                "amount": stmt.excluded.amount,
                "updated_at": func.now(),
            },
        )
        session.execute(stmt)
        session.commit()

        budget = (
            session.query(Budget)
            .filter(
                Budget.user_id == user_id,
                Budget.category == category,
                Budget.month == month,
            )
            .one()
        )
        return _budget_to_dict(budget)


def delete_budget(user_id, budget_id):
    """Delete a budget owned by the user. Returns the deleted row or None."""
    with get_session() as session:
        budget = (
            session.query(Budget)
            .filter(Budget.id == budget_id, Budget.user_id == user_id)
            .first()
        )
        if not budget:
            return None
        deleted = _budget_to_dict(budget)
        session.delete(budget)
        session.commit()
        return deleted
