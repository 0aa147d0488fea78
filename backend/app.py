import os
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask
from flask_cors import CORS

# Load .env from project root (parent directory)
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

from database import init_db
from logging_config import get_logger

logger = get_logger(__name__)

app = Flask(__name__)

# Get frontend URL from environment, default to localhost:5173
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

# CORS configuration - must support credentials for session-based auth
CORS(
    app,
    origins=[FRONTEND_URL, "http://127.0.0.1:5173"],
    supports_credentials=True,
)

# ============================================================================
# SECURITY CONFIGURATION
# ============================================================================

app.config["SECRET_KEY"] = os.getenv("FLASK_SECRET_KEY", os.urandom(32).hex())

# NOTE: __Host- prefix requires HTTPS; use regular name in development
is_production = os.getenv("FLASK_ENV") == "production"
app.config.update(
    SESSION_COOKIE_SECURE=is_production,  # HTTPS only in production
    SESSION_COOKIE_HTTPONLY=True,  # No JavaScript access
    SESSION_COOKIE_SAMESITE="Strict",
    SESSION_COOKIE_NAME="__Host-session" if is_production else "session",
    PERMANENT_SESSION_LIFETIME=3600,  # 1 hour
    SESSION_COOKIE_DOMAIN=None,  # Current domain only
)

app.config["MAX_CONTENT_LENGTH"] = 1 * 1024 * 1024

# ============================================================================
# FLASK-LOGIN INITIALIZATION
# ============================================================================

from auth import init_app as init_auth

init_auth(app)

# ============================================================================
# SECURITY HEADERS MIDDLEWARE
# ============================================================================

from middleware.security_headers import init_app as init_security_headers

init_security_headers(app)

# ============================================================================
# REGISTER BLUEPRINTS
# ============================================================================

from routes import auth_bp, budgets_bp, health_bp, plaid_bp

app.register_blueprint(auth_bp)
app.register_blueprint(health_bp)
app.register_blueprint(budgets_bp)
app.register_blueprint(plaid_bp)

# ============================================================================
# AUTHENTICATION ENFORCEMENT (Global Route Protection)
# ============================================================================

from flask import request as flask_request
from flask_login import current_user

# Public endpoints that don't require authentication
PUBLIC_ENDPOINTS = {
    # Health checks
    "/api/health",
    "/api/ping",
    # Authentication routes
    "/api/auth/login",
    "/api/auth/register",
    "/api/auth/check",
}


@app.before_request
def require_authentication():
    """Enforce authentication on all routes except public endpoints.

    Returns:
        - None if authenticated or accessing public endpoint
        - 401 Unauthorized if not authenticated and accessing protected route
    """
    # Allow OPTIONS requests (CORS preflight)
    if flask_request.method == "OPTIONS":
        return None

    path = flask_request.path

    # Exact match or prefix match for public endpoints
    is_public = any(
        path == endpoint or path.startswith(endpoint + "/")
        for endpoint in PUBLIC_ENDPOINTS
    )

    if is_public:
        return None

    if not current_user.is_authenticated:
        return {
            "error": "Authentication required",
            "message": "You must be logged in to access this endpoint",
        }, 401

    return None


# ============================================================================
# APPLICATION STARTUP
# ============================================================================

# Create missing tables (idempotent)
init_db()

if __name__ == "__main__":
    logger.info("Budget backend starting on http://localhost:5000")
    app.run(debug=False, use_reloader=False, host="0.0.0.0", port=5000)
