# Overview: Flask API routes for employee profiles; parses input and returns JSON responses.

# backend/buffet_pos/routes/profiles.py
"""
Employee profile routes.

SECURITY:
- Listing employees requires VIEW_EMPLOYEES (admin, manager)
- Creating profiles, changing roles and deactivating require MANAGE_EMPLOYEES (admin)
"""
from flask import Blueprint, request, jsonify, current_app

from ..models import Profile
from ..models.auth import ROLE_CASHIER
from ..decorators import require_auth, require_permission, current_context
from ..services import auth_service, profile_service
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_profile,
    ValidationError,
    ConflictError,
    NotFoundError,
)


profiles_bp = Blueprint("profiles", __name__, url_prefix="/api/profiles")

PROFILE_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={"email", "full_name", "phone", "is_active"},
)


@profiles_bp.get("")
@require_auth
@require_permission("VIEW_EMPLOYEES")
def list_profiles_route():
    profiles = profile_service.list_profiles()
    return jsonify({"items": [p.to_dict() for p in profiles], "count": len(profiles)}), 200


@profiles_bp.post("")
@require_auth
@require_permission("MANAGE_EMPLOYEES")
def create_profile_route():
    """
    Create an employee login.

    Body: {"username", "password", "role"?, "email"?, "full_name"?, "phone"?}
    """
    data = request.get_json(silent=True) or {}
    username = (data.get("username") or "").strip()
    password = data.get("password")

    if not username or not password:
        return jsonify({"error": "username and password required"}), 400

    try:
        role = data.get("role") or ROLE_CASHIER
        enforce_rules_profile({"role": role})
        profile = auth_service.create_profile(
            username,
            password,
            email=data.get("email") or None,
            role=role,
            full_name=data.get("full_name"),
            phone=data.get("phone"),
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409

    current_app.logger.info("Profile %s created by %s", profile.username, current_context().profile_id)
    return jsonify({"profile": profile.to_dict()}), 201


@profiles_bp.patch("/<int:profile_id>/role")
@require_auth
@require_permission("MANAGE_EMPLOYEES")
def update_role_route(profile_id: int):
    data = request.get_json(silent=True) or {}
    role = data.get("role")
    if not role:
        return jsonify({"error": "role is required"}), 400

    if profile_id == current_context().profile_id:
        return jsonify({"error": "Cannot change your own role"}), 400

    try:
        profile = profile_service.update_role(profile_id, role)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404

    return jsonify({"profile": profile.to_dict()}), 200


@profiles_bp.patch("/<int:profile_id>")
@require_auth
@require_permission("MANAGE_EMPLOYEES")
def update_profile_route(profile_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Profile, payload=payload, policy=PROFILE_UPDATE_POLICY, partial=True)
        if patch.get("is_active") is False and profile_id == current_context().profile_id:
            raise ValidationError("Cannot deactivate your own profile")
        profile = profile_service.update_profile(profile_id, patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409

    return jsonify({"profile": profile.to_dict()}), 200
