# Overview: Service-layer operations for employee profiles (list, role changes, edits).

from __future__ import annotations

from ..extensions import db
from ..models import Profile
from ..models.auth import ROLES
from ..validation import ConflictError, NotFoundError, ValidationError
from . import session_service


PROFILE_MUTABLE_FIELDS = {"email", "full_name", "phone", "is_active"}


def list_profiles() -> list[Profile]:
    return db.session.query(Profile).order_by(Profile.created_at.desc(), Profile.id.desc()).all()


def require_profile(profile_id: int) -> Profile:
    profile = db.session.get(Profile, profile_id)
    if profile is None:
        raise NotFoundError("Profile not found")
    return profile


def update_role(profile_id: int, role: str) -> Profile:
    if role not in ROLES:
        raise ValidationError(f"role must be one of: {', '.join(ROLES)}")
    profile = require_profile(profile_id)
    profile.role = role
    db.session.commit()
    return profile


def update_profile(profile_id: int, patch: dict) -> Profile:
    """
    Edit contact fields or deactivate. Deactivating revokes every session
    the profile holds.
    """
    profile = require_profile(profile_id)

    email = patch.get("email")
    if email:
        taken = db.session.query(Profile.id).filter(Profile.email == email, Profile.id != profile_id).first()
        if taken:
            raise ConflictError("Email already exists")

    for key, value in patch.items():
        if key in PROFILE_MUTABLE_FIELDS:
            setattr(profile, key, value)
    db.session.commit()

    if patch.get("is_active") is False:
        session_service.revoke_all_profile_sessions(profile.id)
    return profile
