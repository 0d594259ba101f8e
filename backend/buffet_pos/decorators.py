# Overview: Request authentication and role-gating decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .permissions import roles_for_permission
from .services import session_service


def _is_authenticated() -> bool:
    return hasattr(g, 'session_context')


def current_context() -> "session_service.SessionContext":
    """The SessionContext set by @require_auth for this request."""
    return g.session_context


def require_auth(f):
    """
    Require a valid bearer token.

    Sets g.session_context (SessionContext) for the route body. Route
    handlers pass values from it into services explicitly.

    Returns 401 if the Authorization header is missing, the token is
    invalid/expired/revoked, or the profile has been deactivated.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authentication required"}), 401

        token = auth_header.split(" ", 1)[1]
        context = session_service.validate_session(token)

        if not context:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.session_context = context
        return f(*args, **kwargs)

    return decorated_function


def require_permission(permission_code: str):
    """Require the caller's role to be allowed `permission_code`."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            if not g.session_context.can(permission_code):
                return jsonify({
                    "error": "Permission denied",
                    "required_permission": permission_code,
                    "required_roles": list(roles_for_permission(permission_code)),
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator

