"""
Security headers middleware

Applies financial-grade security headers (CSP, HSTS and friends) to every
API response. The CSP allows Plaid Link, which loads in an iframe from
cdn.plaid.com.
"""

from flask import request

PLAID_CDN = "https://cdn.plaid.com"

CSP_DIRECTIVES = [
    "default-src 'self'",
    f"script-src 'self' {PLAID_CDN}",
    # Tailwind requires inline styles
    "style-src 'self' 'unsafe-inline'",
    "img-src 'self' data: https:",
    "font-src 'self' data:",
    "connect-src 'self' "
    "https://sandbox.plaid.com "
    "https://development.plaid.com "
    "https://production.plaid.com",
    f"frame-src {PLAID_CDN}",
    "frame-ancestors 'none'",
    "base-uri 'self'",
    "form-action 'self'",
    "upgrade-insecure-requests",
]

PERMISSIONS_POLICY = [
    "geolocation=()",
    "microphone=()",
    "camera=()",
    "payment=()",
    "usb=()",
]


def set_security_headers(response):
    """Apply security headers to a response.

    Args:
        response: Flask response object

    Returns:
        The same response with security headers set
    """
    response.headers["Content-Security-Policy"] = "; ".join(CSP_DIRECTIVES)

    # No preload until the domain has run HTTPS-only for a while
    if request.is_secure:
        response.headers["Strict-Transport-Security"] = (
            "max-age=31536000; includeSubDomains"
        )

    response.headers["X-Frame-Options"] = "DENY"
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    response.headers["Permissions-Policy"] = ", ".join(PERMISSIONS_POLICY)

    # Balances and transactions must not be cached by intermediaries
    if request.path.startswith("/api/"):
        response.headers["Cache-Control"] = "no-store"

    return response


def init_app(app):
    """Register security headers middleware with Flask app."""

    @app.after_request
    def apply_security_headers(response):
        return set_security_headers(response)
