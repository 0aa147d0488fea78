"""
Budgets Service - Business Logic

Monthly per-category spending limits. One budget per (user, category, month);
saving an existing combination replaces its amount.
"""

import math
import re
from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from database import budgets as db_budgets
from errors import ValidationError
from logging_config import get_logger

logger = get_logger(__name__)

MONTH_PATTERN = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")
MAX_CATEGORY_LENGTH = 100
MAX_AMOUNT = Decimal("99999999.99")


def current_month() -> str:
    """Current month as YYYY-MM (UTC)."""
    return datetime.now(UTC).strftime("%Y-%m")


def validate_month(month) -> str:
    if month is None or month == "":
        return current_month()
    if not isinstance(month, str) or not MONTH_PATTERN.match(month):
        raise ValidationError("Month must be in YYYY-MM format", field="month")
    return month


def validate_amount(amount) -> Decimal:
    """
    Parse a budget amount.

    Accepts numbers and numeric strings; rejects booleans, NaN, infinities
    and negatives. Rounded to cents.
    """
    if isinstance(amount, bool):
        raise ValidationError("Amount must be a valid positive number", field="amount")
    if isinstance(amount, float) and not math.isfinite(amount):
        raise ValidationError("Amount must be a valid positive number", field="amount")

    try:
        value = Decimal(str(amount).strip())
    except InvalidOperation:
        raise ValidationError("Amount must be a valid positive number", field="amount")

    if not value.is_finite() or value < 0 or value > MAX_AMOUNT:
        raise ValidationError("Amount must be a valid positive number", field="amount")

    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def list_budgets(user_id, month=None) -> list:
    """Budgets for a month (default: current), ordered by category."""
    month = validate_month(month)
    return db_budgets.get_budgets_for_month(user_id, month)


def save_budget(user_id, category, amount, month=None) -> dict:
    """
    Create or update the budget for a category and month.

    Raises:
        ValidationError: If category or amount is missing or invalid
    """
    if category is None or amount is None or (isinstance(amount, str) and not amount.strip()):
        raise ValidationError("Category and amount are required")

    if not isinstance(category, str) or not category.strip():
        raise ValidationError("Category and amount are required", field="category")

    category = category.strip()
    if len(category) > MAX_CATEGORY_LENGTH:
        raise ValidationError(
            f"Category must be at most {MAX_CATEGORY_LENGTH} characters",
            field="category",
        )

    value = validate_amount(amount)
    month = validate_month(month)

    budget = db_budgets.upsert_budget(user_id, category, value, month)
    logger.info(
        f"Saved budget {category} for {month}: {value}", extra={"user_id": user_id}
    )
    return budget


def delete_budget(user_id, budget_id) -> dict | None:
    """
    Delete one of the user's budgets.

    Returns:
        The deleted budget, or None if no such budget belongs to the user
    """
    deleted = db_budgets.delete_budget(user_id, budget_id)
    if deleted is None:
        return None
    logger.info(f"Deleted budget {budget_id}", extra={"user_id": user_id})
    return deleted
