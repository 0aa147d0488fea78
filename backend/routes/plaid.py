"""
Plaid Routes - Flask Blueprint

Handles the Plaid bank integration endpoints: Link, token exchange,
transaction sync with categorization, manual review, accounts, holdings,
liabilities and prices. Routes are thin controllers that delegate to
plaid_service and reconciliation_service.
"""

from flask import Blueprint, jsonify, request
from flask_login import current_user

from errors import PersistenceUnavailableError, PlaidAPIError, ValidationError
from logging_config import get_logger
from routes.helpers import get_json_object
from services import plaid_service, reconciliation_service

logger = get_logger(__name__)

plaid_bp = Blueprint("plaid", __name__, url_prefix="/api/plaid")


def _internal_error(action: str, e: Exception):
    logger.exception(f"{action} error: {e}", extra={"user_id": current_user.id})
    return jsonify({"error": f"Failed to {action.lower()}"}), 500


def _plaid_error(e: PlaidAPIError):
    logger.error(
        f"Plaid error on {e.endpoint}: {e.error_code} {e.message}",
        extra={"user_id": current_user.id},
    )
    return jsonify(e.to_dict()), 502


@plaid_bp.route("/status", methods=["GET"])
def status():
    """Integration status for the signed-in user."""
    return jsonify(plaid_service.get_status(current_user.id))


@plaid_bp.route("/create_link_token", methods=["POST"])
def create_link_token():
    """
    Create a Plaid Link token.

    Returns:
        {"link_token": str}
    """
    try:
        link_token = plaid_service.create_link_token(current_user.id)
        return jsonify({"link_token": link_token})

    except PlaidAPIError as e:
        return _plaid_error(e)
    except Exception as e:
        return _internal_error("Create link token", e)


@plaid_bp.route("/exchange_public_token", methods=["POST"])
def exchange_public_token():
    """
    Exchange a Link public token and save the bank connection.

    Request Body:
        {"public_token": str}
    """
    try:
        data = get_json_object()
        result = plaid_service.exchange_public_token(
            current_user.id, data.get("public_token")
        )
        return jsonify(result)

    except ValidationError as e:
        return jsonify(e.to_dict()), 400
    except PlaidAPIError as e:
        return _plaid_error(e)
    except Exception as e:
        return _internal_error("Exchange public token", e)


@plaid_bp.route("/transactions", methods=["GET", "POST"])
def transactions():
    """
    Fetch transactions from all linked banks and categorize new ones.

    Query params / body (optional):
        start_date (str): YYYY-MM-DD (default: 30 days ago)
        end_date (str): YYYY-MM-DD (default: today)

    Returns:
        {"transactions", "accounts", "processing_summary"}
    """
    try:
        if request.method == "POST":
            params = get_json_object()
        else:
            params = request.args

        result = plaid_service.fetch_transactions(
            current_user.id,
            start_date=params.get("start_date"),
            end_date=params.get("end_date"),
        )
        return jsonify(result)

    except ValidationError as e:
        return jsonify(e.to_dict()), 400
    except PersistenceUnavailableError as e:
        return jsonify(e.to_dict()), 503
    except Exception as e:
        return _internal_error("Fetch transactions", e)


@plaid_bp.route("/transactions/manual-review", methods=["GET"])
def manual_review():
    """
    Transactions awaiting manual categorization, oldest first.

    Returns:
        {"transactions": [...], "count": int}
    """
    try:
        return jsonify(reconciliation_service.get_manual_review(current_user.id))

    except Exception as e:
        return _internal_error("Fetch manual review transactions", e)


@plaid_bp.route("/categorizations", methods=["GET"])
def categorizations():
    """
    All stored categorizations for the user.

    Returns:
        {"categorizations": [...]}
    """
    try:
        rows = reconciliation_service.get_categorizations(current_user.id)
        return jsonify({"categorizations": rows})

    except Exception as e:
        return _internal_error("Fetch categorizations", e)


@plaid_bp.route("/categorize", methods=["POST"])
def categorize():
    """
    Assign a category to a transaction and clear it from manual review.

    Request Body:
        {"transaction_id": str, "category": str, "plaid_data": dict (optional)}

        "transaction_data" is accepted in place of "plaid_data".

    Returns:
        {"success": true, "categorization": {...}}
    """
    try:
        data = get_json_object()
        plaid_data = data.get("plaid_data")
        if plaid_data is None:
            plaid_data = data.get("transaction_data")
        categorization = reconciliation_service.categorize_transaction(
            current_user.id,
            data.get("transaction_id"),
            data.get("category"),
            plaid_data,
        )
        return jsonify({"success": True, "categorization": categorization})

    except ValidationError as e:
        return jsonify(e.to_dict()), 400
    except Exception as e:
        return _internal_error("Categorize transaction", e)


@plaid_bp.route("/banks", methods=["GET"])
def banks():
    """
    Connected banks, newest first.

    Returns:
        {"banks": [...]}
    """
    try:
        return jsonify({"banks": plaid_service.list_banks(current_user.id)})

    except Exception as e:
        return _internal_error("Fetch connected banks", e)


@plaid_bp.route("/banks/<int:bank_id>", methods=["DELETE"])
def disconnect_bank(bank_id):
    """
    Disconnect a bank.

    Returns:
        {"success": true, "message": str} or 404
    """
    try:
        if not plaid_service.disconnect_bank(current_user.id, bank_id):
            return jsonify({"error": "Bank connection not found"}), 404
        return jsonify({"success": True, "message": "Bank disconnected successfully"})

    except Exception as e:
        return _internal_error("Disconnect bank", e)


@plaid_bp.route("/accounts", methods=["GET"])
def accounts():
    """Accounts across all linked banks."""
    try:
        return jsonify(plaid_service.get_accounts(current_user.id))

    except Exception as e:
        return _internal_error("Fetch accounts", e)


@plaid_bp.route("/holdings", methods=["GET"])
def holdings():
    """Investment holdings across all linked banks."""
    try:
        return jsonify(plaid_service.get_holdings(current_user.id))

    except Exception as e:
        return _internal_error("Fetch holdings", e)


@plaid_bp.route("/current-prices/<symbols>", methods=["GET"])
def current_prices(symbols):
    """
    Current market prices.

    Path params:
        symbols (str): Comma-separated ticker symbols

    Returns:
        {"currentPrices": {symbol: {...}}}
    """
    try:
        return jsonify({"currentPrices": plaid_service.get_current_prices(symbols)})

    except Exception as e:
        return _internal_error("Fetch current prices", e)


@plaid_bp.route("/liabilities", methods=["GET"])
def liabilities():
    """
    Credit, mortgage and student loan liabilities.

    Returns:
        {"liabilities": {"credit": [...], "mortgage": [...], "student": [...]}}
    """
    try:
        return jsonify({"liabilities": plaid_service.get_liabilities(current_user.id)})

    except Exception as e:
        return _internal_error("Fetch liabilities", e)
