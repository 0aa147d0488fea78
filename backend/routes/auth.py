"""
Authentication routes (login, logout, registration)

Session-based authentication with Flask-Login.
"""

from datetime import timedelta

from flask import Blueprint, jsonify
from flask_login import current_user, login_required, login_user, logout_user
from sqlalchemy.exc import IntegrityError

from errors import ValidationError
from logging_config import get_logger
from models.user import User
from routes.helpers import get_json_object

logger = get_logger(__name__)

# Create authentication blueprint
auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")

MIN_PASSWORD_LENGTH = 8


def _get_str(data: dict, key: str) -> str:
    value = data.get(key)
    return value.strip() if isinstance(value, str) else ""


@auth_bp.route("/register", methods=["POST"])
def register():
    """Register new user account.

    Request Body:
        {
            "username": str (required),
            "email": str (required),
            "password": str (required, min 8 characters)
        }

    Returns:
        Success:
            201: {"message": "User created successfully", "user": {...}}
        Errors:
            400: Missing/invalid fields, or username/email already taken
    """
    try:
        data = get_json_object()
    except ValidationError as e:
        return jsonify(e.to_dict()), 400

    username = _get_str(data, "username")
    email = _get_str(data, "email").lower()
    password = data.get("password") if isinstance(data.get("password"), str) else ""

    if not username or not email or not password:
        return jsonify({"error": "Username, email, and password are required"}), 400

    if len(password) < MIN_PASSWORD_LENGTH:
        return jsonify(
            {"error": f"Password must be at least {MIN_PASSWORD_LENGTH} characters"}
        ), 400

    if User.exists(username, email):
        return jsonify({"error": "Username or email already exists"}), 400

    try:
        user = User.create(username=username, email=email, password=password)
    except IntegrityError:
        # Lost a race with a concurrent registration
        return jsonify({"error": "Username or email already exists"}), 400
    except Exception as e:
        logger.error(f"Registration error: {e}")
        return jsonify({"error": "Internal server error"}), 500

    # Auto-login after registration
    login_user(user, remember=True, duration=timedelta(days=7))
    user.update_last_login()

    logger.info(f"Registered user {username}", extra={"user_id": user.id})

    return jsonify({"message": "User created successfully", "user": user.to_dict()}), 201


@auth_bp.route("/login", methods=["POST"])
def login():
    """Authenticate user and create session.

    Request Body:
        {
            "username": str,
            "password": str,
            "remember": bool (optional, default True)
        }

    Returns:
        Success:
            200: {"message": "Login successful", "user": {...}}
        Errors:
            400: Missing or invalid credentials
    """
    try:
        data = get_json_object()
    except ValidationError as e:
        return jsonify(e.to_dict()), 400

    username = _get_str(data, "username")
    password = data.get("password") if isinstance(data.get("password"), str) else ""
    remember = bool(data.get("remember", True))

    if not username or not password:
        return jsonify({"error": "Username and password are required"}), 400

    user = User.get_by_username(username)
    if not user or not user.check_password(password):
        logger.warning(f"Failed login for {username}")
        return jsonify({"error": "Invalid username or password"}), 400

    if not user.is_active:
        return jsonify({"error": "Account disabled"}), 400

    login_user(
        user,
        remember=remember,
        duration=timedelta(hours=1) if not remember else timedelta(days=7),
    )
    user.update_last_login()

    logger.info("Login successful", extra={"user_id": user.id})

    return jsonify({"message": "Login successful", "user": user.to_dict()}), 200


@auth_bp.route("/logout", methods=["POST"])
@login_required
def logout():
    """Logout current user and destroy session.

    Returns:
        200: {"success": true}
    """
    logger.info("Logout", extra={"user_id": current_user.id})
    logout_user()
    return jsonify({"success": True}), 200


@auth_bp.route("/me", methods=["GET"])
@login_required
def get_current_user():
    """Get current authenticated user information.

    Returns:
        200: User object (without password hash)
        401: Not authenticated
    """
    return jsonify(current_user.to_dict()), 200


@auth_bp.route("/check", methods=["GET"])
def check_auth():
    """Check if user is authenticated (for frontend).

    Returns:
        200: {
            "authenticated": bool,
            "user": {...} (if authenticated)
        }
    """
    if current_user.is_authenticated:
        return jsonify({"authenticated": True, "user": current_user.to_dict()}), 200
    return jsonify({"authenticated": False}), 200
