"""
Budgets Routes - Flask Blueprint

Monthly per-category budgets for the signed-in user. Routes are thin
controllers that delegate to budgets_service.
"""

from flask import Blueprint, jsonify, request
from flask_login import current_user

from errors import ValidationError
from logging_config import get_logger
from routes.helpers import get_json_object
from services import budgets_service

logger = get_logger(__name__)

budgets_bp = Blueprint("budgets", __name__, url_prefix="/api/budgets")


@budgets_bp.route("", methods=["GET"])
def get_budgets():
    """
    Get budgets for a month.

    Query params:
        month (str): YYYY-MM (default: current month)

    Returns:
        {"budgets": [...]} ordered by category
    """
    try:
        budgets = budgets_service.list_budgets(
            current_user.id, request.args.get("month")
        )
        return jsonify({"budgets": budgets})

    except ValidationError as e:
        return jsonify(e.to_dict()), 400
    except Exception as e:
        logger.exception(f"Get budgets error: {e}", extra={"user_id": current_user.id})
        return jsonify({"error": "Internal server error"}), 500


@budgets_bp.route("", methods=["POST"])
def save_budget():
    """
    Create or update a budget.

    Request Body:
        {"category": str, "amount": number, "month": "YYYY-MM" (optional)}

    Returns:
        {"budget": {...}, "message": "Budget saved successfully"}
    """
    try:
        data = get_json_object()
        budget = budgets_service.save_budget(
            current_user.id,
            data.get("category"),
            data.get("amount"),
            data.get("month"),
        )
        return jsonify({"budget": budget, "message": "Budget saved successfully"})

    except ValidationError as e:
        return jsonify(e.to_dict()), 400
    except Exception as e:
        logger.exception(f"Save budget error: {e}", extra={"user_id": current_user.id})
        return jsonify({"error": "Internal server error"}), 500


@budgets_bp.route("/<int:budget_id>", methods=["DELETE"])
def delete_budget(budget_id):
    """
    Delete a budget.

    Returns:
        {"message": "Budget deleted successfully", "budget": {...}} or 404
    """
    try:
        budget = budgets_service.delete_budget(current_user.id, budget_id)
        if budget is None:
            return jsonify({"error": "Budget not found"}), 404
        return jsonify({"message": "Budget deleted successfully", "budget": budget})

    except Exception as e:
        logger.exception(
            f"Delete budget error: {e}", extra={"user_id": current_user.id}
        )
        return jsonify({"error": "Internal server error"}), 500
