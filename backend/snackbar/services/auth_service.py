# Overview: Service-layer operations for staff auth; encapsulates business logic and database work.

"""
Staff Authentication Service

WHY: Admin actions (reports, order purge) must be tied to a named login
instead of a shared passphrase.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Minimum 8 characters, at least one letter and one digit
- Session tokens managed separately (see session_service.py)
"""

import re

import bcrypt

from ..extensions import db
from ..models import User
from ..validation import ValidationError
from snackbar.time_utils import utcnow


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    """
    Requirements:
    - Minimum 8 characters
    - At least one letter
    - At least one digit

    Raises PasswordValidationError if requirements not met.
    """
    if not isinstance(password, str) or len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Za-z]', password):
        raise PasswordValidationError("Password must contain at least one letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")


def hash_password(password: str, *, rounds: int = 12) -> str:
    """Validate strength, then hash with bcrypt."""
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    bcrypt.checkpw() is constant-time. A malformed stored hash verifies as False.
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def create_user(username: str, password: str, *, rounds: int = 12) -> User:
    """
    Create a staff user.

    Raises:
        ValidationError: blank username or username already taken
        PasswordValidationError: weak password
    """
    username = (username or "").strip()
    if not username:
        raise ValidationError("username is required")
    if len(username) > 64:
        raise ValidationError("username exceeds max length 64")

    if db.session.query(User).filter_by(username=username).first():
        raise ValidationError(f"Username {username!r} already exists")

    user = User(username=username, password_hash=hash_password(password, rounds=rounds), is_active=True)
    db.session.add(user)
    db.session.commit()
    return user


def authenticate(username: str, password: str) -> User | None:
    """
    Returns the user when credentials match an active account, else None.

    Stamps last_login_at on success.
    """
    if not username or not password:
        return None

    user = db.session.query(User).filter_by(username=username.strip()).first()
    if not user or not user.is_active:
        return None

    if not verify_password(password, user.password_hash):
        return None

    user.last_login_at = utcnow()
    db.session.commit()
    return user


def set_active(username: str, active: bool) -> User:
    user = db.session.query(User).filter_by(username=username).first()
    if not user:
        raise ValidationError(f"User {username!r} not found")
    user.is_active = active
    db.session.commit()
    return user
