"""
Password hashing and reset-token utilities.
"""

import re
import secrets
from datetime import datetime, timedelta
from typing import List, Optional

import bcrypt

from backend.app.core.config import settings

BCRYPT_ROUNDS = 12


def get_password_hash(password: str) -> str:
    """Hash a password with bcrypt."""
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Compare a plain text password with a stored bcrypt hash."""
    if not hashed_password:
        return False
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        # Malformed hash in storage
        return False


def password_policy_errors(password: str) -> List[str]:
    """
    Check a new password against the password policy.

    Rules:
        - at least 8 characters
        - at least one upper-case letter
        - at least one lower-case letter

    Returns:
        List of French error messages, empty when the password is acceptable
    """
    errors = []
    if len(password) < 8:
        errors.append("Le mot de passe doit contenir au moins 8 caractères")
    if not re.search(r"[A-Z]", password):
        errors.append("Le mot de passe doit contenir au moins une lettre majuscule")
    if not re.search(r"[a-z]", password):
        errors.append("Le mot de passe doit contenir au moins une lettre minuscule")
    return errors


def generate_reset_token() -> str:
    """Generate a 64-character hexadecimal reset token."""
    return secrets.token_hex(32)


def reset_token_expiry() -> datetime:
    """Expiry timestamp (naive UTC) for a freshly generated reset token."""
    return datetime.utcnow() + timedelta(hours=settings.password_reset_expire_hours)


def is_reset_token_valid(expiry: Optional[datetime]) -> bool:
    """A reset token is valid while its expiry lies in the future."""
    if expiry is None:
        return False
    return datetime.utcnow() < expiry
