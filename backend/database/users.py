"""
Users - Database Operations

Handles account lookup and creation for authentication.
"""

from datetime import UTC, datetime

from sqlalchemy import or_

from .base import get_session
from .models.user import User


def _user_to_dict(user):
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "password_hash": user.password_hash,
        "is_active": user.is_active,
        "last_login_at": user.last_login_at,
        "created_at": user.created_at,
        "updated_at": user.updated_at,
    }


def insert_user(username, email, password_hash):
    """Insert a new user and return its ID."""
    with get_session() as session:
        user = User(username=username, email=email, password_hash=password_hash)
        session.add(user)
        session.commit()
        return user.id


def get_user_by_id(user_id):
    """Get a user by primary key."""
    with get_session() as session:
        user = session.get(User, user_id)
        return _user_to_dict(user) if user else None


def get_user_by_username(username):
    """Get a user by username."""
    with get_session() as session:
        user = session.query(User).filter(User.username == username).first()
        return _user_to_dict(user) if user else None


def user_exists(username, email):
    """True if any user already holds this username or email."""
    with get_session() as session:
        return (
            session.query(User.id)
            .filter(or_(User.username == username, User.email == email))
            .first()
            is not None
        )


def update_user_last_login(user_id, timestamp=None):
    """Update last_login_at timestamp."""
    with get_session() as session:
        user = session.get(User, user_id)
        if not user:
            return False
        user.last_login_at = timestamp or datetime.now(UTC)
        session.commit()
        return True
