"""
Admin identity checks: bcrypt password verification and the email allow-list.
"""
import bcrypt
from typing import Optional

from portfolio.config import settings

# Principal used for password logins
PASSWORD_PRINCIPAL = "cms_admin"


def hash_password(password: str, rounds: int = 12) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password
        rounds: bcrypt cost factor

    Returns:
        Hashed password string
    """
    hashed = bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt(rounds=rounds))
    return hashed.decode('utf-8')


def verify_password(password: str, hashed_password: str) -> bool:
    """
    Verify a password against a hashed password.
    Malformed hashes count as a mismatch.
    """
    try:
        return bcrypt.checkpw(
            password.encode('utf-8'),
            hashed_password.encode('utf-8')
        )
    except ValueError:
        return False


def verify_admin_password(password: str) -> bool:
    """
    Verify admin password against stored hash.

    Raises:
        ValueError: If ADMIN_PASSWORD_HASH is not configured
    """
    if not settings.ADMIN_PASSWORD_HASH:
        raise ValueError("ADMIN_PASSWORD_HASH not configured")

    return verify_password(password, settings.ADMIN_PASSWORD_HASH)


def is_admin_email(email: Optional[str]) -> bool:
    """True when the address is on the ADMIN_EMAILS allow-list."""
    if not email:
        return False
    allowed = {e.strip().lower() for e in settings.ADMIN_EMAILS}
    return email.strip().lower() in allowed


def is_admin(principal: Optional[dict]) -> bool:
    """
    The single capability flag CMS mutations check.

    Args:
        principal: Decoded token payload, or None for anonymous callers
    """
    if not principal or principal.get("role") != "admin":
        return False
    if principal.get("sub") == PASSWORD_PRINCIPAL:
        return True
    return is_admin_email(principal.get("email"))
