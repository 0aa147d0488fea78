"""
User model for Flask-Login authentication

Implements UserMixin interface for session management with secure password hashing.
Uses the database.users module for persistence.
"""

from datetime import UTC, datetime
from typing import Any, Dict, Optional

from flask_login import UserMixin
from werkzeug.security import check_password_hash, generate_password_hash

from database import users as db_users


class User(UserMixin):
    """User model with Flask-Login integration.

    Attributes:
        id: User ID (primary key)
        username: Unique username for login
        email: Unique email address
        password_hash: Hashed password (pbkdf2:sha256:600000)
        is_active: Account active status
        last_login_at: Timestamp of last successful login
        created_at: Account creation timestamp
        updated_at: Last update timestamp
    """

    def __init__(
        self,
        id: int,
        username: str,
        email: Optional[str] = None,
        password_hash: Optional[str] = None,
        is_active: bool = True,
        last_login_at: Optional[datetime] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None
    ):
        self.id = id
        self.username = username
        self.email = email
        self.password_hash = password_hash
        self._is_active = is_active
        self.last_login_at = last_login_at
        self.created_at = created_at
        self.updated_at = updated_at

    @property
    def is_active(self) -> bool:
        """Flask-Login requires is_active property."""
        return self._is_active

    def check_password(self, password: str) -> bool:
        """Verify password against stored hash.

        Args:
            password: Plain text password to check

        Returns:
            True if password matches, False otherwise
        """
        if not self.password_hash or not isinstance(password, str):
            return False
        return check_password_hash(self.password_hash, password)

    @staticmethod
    def exists(username: str, email: str) -> bool:
        """True if the username or email is already registered."""
        return db_users.user_exists(username, email)

    @staticmethod
    def create(username: str, email: str, password: str) -> 'User':
        """Create new user with hashed password.

        Uses pbkdf2:sha256:600000 for password hashing (NIST recommended).

        Args:
            username: Unique username
            email: Unique email address
            password: Plain text password

        Returns:
            User instance with database ID

        Raises:
            sqlalchemy.exc.IntegrityError: If username or email already exists
        """
        password_hash = generate_password_hash(
            password,
            method='pbkdf2:sha256:600000'
        )

        user_id = db_users.insert_user(
            username=username,
            email=email,
            password_hash=password_hash
        )

        return User(
            id=user_id,
            username=username,
            email=email,
            password_hash=password_hash,
            is_active=True
        )

    @staticmethod
    def get_by_id(user_id: int) -> Optional['User']:
        """Load user by ID, or None if not found."""
        user_data = db_users.get_user_by_id(user_id)
        if user_data:
            return User(**user_data)
        return None

    @staticmethod
    def get_by_username(username: str) -> Optional['User']:
        """Load user by username, or None if not found."""
        user_data = db_users.get_user_by_username(username)
        if user_data:
            return User(**user_data)
        return None

    def update_last_login(self) -> None:
        """Update last_login_at timestamp to now."""
        self.last_login_at = datetime.now(UTC)
        db_users.update_user_last_login(self.id, self.last_login_at)

    def to_dict(self) -> Dict[str, Any]:
        """Convert user to dictionary (password_hash excluded)."""
        return {
            'id': self.id,
            'username': self.username,
            'email': self.email,
            'is_active': self.is_active,
            'last_login_at': self.last_login_at.isoformat() if self.last_login_at else None,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }

    def __repr__(self) -> str:
        return f"<User {self.username} (id={self.id})>"
