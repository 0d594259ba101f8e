# Overview: Service-layer operations for session tokens and the per-request session context.

"""
Session Token Management

WHY: The signed-in profile (and therefore its role) is resolved once per
request into an explicit SessionContext. Route handlers pass what they need
from it (actor id, role) into service calls; nothing reads ambient state.

SECURITY FEATURES:
- Cryptographically secure random tokens (32 bytes)
- Tokens hashed with SHA-256 before storage
- 24-hour absolute timeout, 2-hour idle timeout
- Revocable on logout or when the profile is deactivated
"""

import hashlib
import secrets
from dataclasses import dataclass
from datetime import timedelta

from ..extensions import db
from ..models import Profile, SessionToken
from ..permissions import has_permission
from ..time_utils import utcnow


SESSION_ABSOLUTE_TIMEOUT = timedelta(hours=24)
SESSION_IDLE_TIMEOUT = timedelta(hours=2)


@dataclass
class SessionContext:
    """Who is calling: the profile and the session it authenticated with."""
    profile: Profile
    session: SessionToken

    @property
    def profile_id(self) -> int:
        return self.profile.id

    @property
    def role(self) -> str:
        return self.profile.role

    def can(self, permission_code: str) -> bool:
        return has_permission(self.role, permission_code)


def generate_token() -> str:
    """64-character hex string (32 bytes of entropy); never stored in plaintext."""
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def create_session(
    profile_id: int,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> tuple[SessionToken, str]:
    """
    Create a session for a profile.

    Returns (session_record, plaintext_token). Raises ValueError if the
    profile is missing or inactive.
    """
    profile = db.session.get(Profile, profile_id)
    if not profile or not profile.is_active:
        raise ValueError("Profile not found or inactive")

    plaintext_token = generate_token()
    now = utcnow()

    session = SessionToken(
        profile_id=profile_id,
        token_hash=hash_token(plaintext_token),
        created_at=now,
        last_used_at=now,
        expires_at=now + SESSION_ABSOLUTE_TIMEOUT,
        user_agent=(user_agent or "")[:255] or None,
        ip_address=ip_address,
        is_revoked=False,
    )

    db.session.add(session)
    db.session.commit()
    return session, plaintext_token


def validate_session(token: str) -> SessionContext | None:
    """
    Resolve a bearer token into a SessionContext.

    Returns None if the token is unknown, revoked, expired, idle too long, or
    its profile has been deactivated. Refreshes last_used_at on success.
    """
    now = utcnow()
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()

    if not session:
        return None

    if session.expires_at < now:
        return None

    if now - session.last_used_at > SESSION_IDLE_TIMEOUT:
        _revoke(session, now)
        return None

    profile = session.profile
    if not profile or not profile.is_active:
        _revoke(session, now)
        return None

    session.last_used_at = now
    db.session.commit()
    return SessionContext(profile=profile, session=session)


def _revoke(session: SessionToken, now) -> None:
    session.is_revoked = True
    session.revoked_at = now
    db.session.commit()


def revoke_session(token: str) -> bool:
    """Returns True if an active session was revoked."""
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()
    if not session:
        return False
    _revoke(session, utcnow())
    return True


def revoke_all_profile_sessions(profile_id: int, *, except_session_id: int | None = None) -> int:
    """Revoke every live session of a profile, optionally keeping one. Returns how many were revoked."""
    now = utcnow()
    query = db.session.query(SessionToken).filter_by(profile_id=profile_id, is_revoked=False)
    if except_session_id is not None:
        query = query.filter(SessionToken.id != except_session_id)
    sessions = query.all()
    for session in sessions:
        session.is_revoked = True
        session.revoked_at = now
    db.session.commit()
    return len(sessions)
