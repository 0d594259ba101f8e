# Overview: Flask API routes for sign-in, sign-out and the current session.

# backend/buffet_pos/routes/auth.py
"""
Authentication API routes

Token-based sessions: POST /login returns a bearer token that every other
route expects in the Authorization header.
"""

from flask import Blueprint, request, jsonify, current_app

from ..decorators import require_auth, current_context
from ..permissions import ROUTE_ROLES, permissions_for_role, can_open_route
from ..services import auth_service
from ..services import session_service


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Authenticate a profile and create a session token.

    Body: {"username": "...", "password": "..."} (email accepted as username)
    """
    try:
        data = request.get_json(silent=True) or {}
        identifier = data.get("username") or data.get("email")
        password = data.get("password")

        if not all([identifier, password]):
            return jsonify({"error": "username/email and password required"}), 400

        profile = auth_service.authenticate(identifier, password)
        if not profile:
            return jsonify({"error": "Invalid credentials"}), 401

        _, token = session_service.create_session(
            profile.id,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )

        return jsonify({
            "token": token,
            "profile": profile.to_dict(),
            "permissions": permissions_for_role(profile.role),
        }), 200

    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
@require_auth
def logout_route():
    """Revoke the token used for this request."""
    try:
        token = request.headers["Authorization"].split(" ", 1)[1]
        session_service.revoke_session(token)
        return jsonify({"message": "Logged out"}), 200
    except Exception:
        current_app.logger.exception("Failed to logout user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.get("/me")
@require_auth
def me_route():
    """Current profile, its permissions and the shell routes it may open."""
    context = current_context()
    return jsonify({
        "profile": context.profile.to_dict(),
        "permissions": permissions_for_role(context.role),
        "routes": [path for path in ROUTE_ROLES if can_open_route(context.role, path)],
    }), 200


@auth_bp.post("/password")
@require_auth
def change_password_route():
    """
    Change the caller's own password.

    Body: {"current_password": "...", "new_password": "..."}
    Every other session the profile holds is revoked.
    """
    context = current_context()
    data = request.get_json(silent=True) or {}
    current_password = data.get("current_password")
    new_password = data.get("new_password")

    if not all([current_password, new_password]):
        return jsonify({"error": "current_password and new_password required"}), 400

    if not auth_service.verify_password(current_password, context.profile.password_hash):
        return jsonify({"error": "Current password is incorrect"}), 400

    try:
        auth_service.change_password(context.profile, new_password)
    except auth_service.PasswordValidationError as e:
        return jsonify({"error": str(e)}), 400

    session_service.revoke_all_profile_sessions(context.profile_id, except_session_id=context.session.id)
    return jsonify({"message": "Password changed"}), 200
