"""
Access token encryption for tokens stored at rest.

Uses Fernet with ENCRYPTION_KEY. Without a key tokens pass through
unchanged and a warning is logged on every encryption.
"""

import os

from cryptography.fernet import Fernet
from dotenv import load_dotenv

from logging_config import get_logger

load_dotenv(override=False)

logger = get_logger(__name__)


def _cipher():
    key = os.getenv("ENCRYPTION_KEY")
    return Fernet(key) if key else None


def encrypt_token(token: str) -> str:
    """Encrypt sensitive token for storage."""
    cipher = _cipher()
    if not cipher:
        logger.warning(
            "ENCRYPTION_KEY not set. Storing token unencrypted (NOT recommended for production)"
        )
        return token
    return cipher.encrypt(token.encode()).decode()


def decrypt_token(encrypted_token: str) -> str:
    """Decrypt stored token."""
    cipher = _cipher()
    if not cipher:
        return encrypted_token
    return cipher.decrypt(encrypted_token.encode()).decode()
