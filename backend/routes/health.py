"""
Minimal health check endpoints

No verbose error messages or internal state exposed to anonymous callers.
"""

from datetime import UTC, datetime

from flask import Blueprint, jsonify
from flask_login import current_user
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from database.base import get_session

# Create health blueprint
health_bp = Blueprint("health", __name__, url_prefix="/api")


def check_db_connection() -> bool:
    """Test database connectivity.

    Returns:
        True if database is accessible
    """
    try:
        with get_session() as session:
            return session.execute(text("SELECT 1")).scalar() == 1
    except SQLAlchemyError:
        return False


@health_bp.route("/health", methods=["GET"])
def health_check():
    """Minimal health check endpoint.

    Two response levels:
    1. Unauthenticated requests: Minimal {"status": "ok"}
    2. Authenticated requests: Database check included

    Returns:
        200: Service is healthy
        503: Database unreachable (authenticated view only)
    """
    if not current_user.is_authenticated:
        return jsonify({"status": "ok"}), 200

    health = {
        "status": "ok",
        "timestamp": datetime.now(UTC).isoformat(),
        "checks": {
            "database": check_db_connection(),
        },
    }

    all_healthy = all(health["checks"].values())
    health["status"] = "ok" if all_healthy else "degraded"

    return jsonify(health), 200 if all_healthy else 503


@health_bp.route("/ping", methods=["GET"])
def ping():
    """Ultra-minimal ping endpoint for basic uptime checks.

    Returns:
        200: {"pong": true}
    """
    return jsonify({"pong": True}), 200
