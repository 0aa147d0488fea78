"""Middleware package for security and request processing."""

from middleware.security_headers import init_app, set_security_headers

__all__ = [
    'init_app',
    'set_security_headers'
]
