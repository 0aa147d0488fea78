"""
Flask-Login authentication configuration

Configures session management, user loading, and authentication boundaries.
"""

from flask import jsonify
from flask_login import LoginManager, current_user, login_required

from models.user import User

# Initialize Flask-Login manager
login_manager = LoginManager()
login_manager.session_protection = 'strong'  # Protect against session hijacking


@login_manager.user_loader
def load_user(user_id):
    """Load user by ID for session management.

    Args:
        user_id: User ID stored in session (as string)

    Returns:
        User object or None if user not found
    """
    try:
        return User.get_by_id(int(user_id))
    except (ValueError, TypeError):
        return None


@login_manager.unauthorized_handler
def unauthorized():
    """Return a JSON 401 for @login_required routes."""
    return jsonify({
        'error': 'Authentication required',
        'message': 'Please log in to access this resource'
    }), 401


def init_app(app):
    """Initialize Flask-Login with Flask app."""
    login_manager.init_app(app)


__all__ = [
    'login_manager',
    'login_required',
    'current_user',
    'init_app'
]
