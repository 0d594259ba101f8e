# Overview: Service-layer operations for auth; password hashing and sign-in.

"""
Authentication Service

WHY: Every sale, refund and expense is attributed to a profile. Uses bcrypt
for password hashing and validates password strength.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor from BCRYPT_ROUNDS, default 12)
- Minimum 8 characters; upper, lower, digit and special char required
- Session tokens managed separately (see session_service.py)
"""

import re

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import Profile
from ..models.auth import ROLES, ROLE_CASHIER
from ..time_utils import utcnow
from ..validation import ConflictError, ValidationError


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Raises PasswordValidationError if requirements not met.
    """
    if not password or len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")

    if not re.search(r"[!@#$%^&*(),.'\":{}|<>]", password):
        raise PasswordValidationError("Password must contain at least one special character")


def hash_password(password: str) -> str:
    """Validate strength, then hash with bcrypt."""
    validate_password_strength(password)
    rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt(rounds=rounds))
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """Timing-safe bcrypt check; malformed hashes never match."""
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def create_profile(
    username: str,
    password: str,
    *,
    email: str | None = None,
    role: str = ROLE_CASHIER,
    full_name: str | None = None,
    phone: str | None = None,
) -> Profile:
    """
    Create an employee profile.

    Raises:
        ValidationError: bad role or missing username
        PasswordValidationError: weak password
        ConflictError: username or email already taken
    """
    username = (username or "").strip()
    if not username:
        raise ValidationError("username is required")
    if role not in ROLES:
        raise ValidationError(f"role must be one of: {', '.join(ROLES)}")

    clauses = [Profile.username == username]
    if email:
        clauses.append(Profile.email == email)
    if db.session.query(Profile).filter(db.or_(*clauses)).first():
        raise ConflictError("Username or email already exists")

    profile = Profile(
        username=username,
        email=email or None,
        role=role,
        full_name=full_name,
        phone=phone,
        password_hash=hash_password(password),
    )
    db.session.add(profile)
    db.session.commit()
    return profile


def authenticate(identifier: str, password: str) -> Profile | None:
    """
    Username-or-email plus password sign-in.

    Returns the active profile on success (and stamps last_login_at),
    None otherwise.
    """
    if not identifier or not password:
        return None

    profile = db.session.query(Profile).filter(
        db.or_(Profile.username == identifier, Profile.email == identifier),
        Profile.is_active.is_(True),
    ).first()

    if not profile:
        return None

    if verify_password(password, profile.password_hash):
        profile.last_login_at = utcnow()
        db.session.commit()
        return profile

    return None


def change_password(profile: Profile, new_password: str) -> None:
    profile.password_hash = hash_password(new_password)
    db.session.commit()
