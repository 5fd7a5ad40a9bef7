"""Password hashing utilities.

bcrypt salts every hash and its cost factor is configurable
(TASKHUB_BCRYPT_ROUNDS, never below 10). checkpw compares in constant
time. Passwords are truncated to 72 bytes, bcrypt's input limit.
"""

from typing import Optional

import bcrypt

from taskhub.config import settings


def hash_password(password: str, rounds: Optional[int] = None) -> str:
    """Hash a password with bcrypt using the configured cost factor."""
    pw_bytes = password.encode("utf-8")[:72]
    salt = bcrypt.gensalt(rounds=rounds or settings.bcrypt_rounds)
    return bcrypt.hashpw(pw_bytes, salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a plaintext password against a stored bcrypt hash."""
    try:
        pw_bytes = password.encode("utf-8")[:72]
        return bcrypt.checkpw(pw_bytes, password_hash.encode("utf-8"))
    except (ValueError, TypeError):
        return False
