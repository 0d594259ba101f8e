from __future__ import annotations

from flask import Blueprint, jsonify, request

from ..decorators import require_auth, require_permission
from ..services import settings_service
from ..validation import ValidationError


settings_bp = Blueprint("settings", __name__, url_prefix="/api/settings")


@settings_bp.get("")
@require_auth
@require_permission("MANAGE_SETTINGS")
def list_settings_route():
    rows = settings_service.list_settings()
    return jsonify({
        "items": [row.to_dict() for row in rows],
        "values": {row.key: row.value for row in rows},
        "count": len(rows),
    })


@settings_bp.get("/<string:key>")
@require_auth
@require_permission("MANAGE_SETTINGS")
def get_setting_route(key: str):
    row = settings_service.get_setting(key)
    if row is None:
        return jsonify({"error": "Setting not found"}), 404
    return jsonify({"setting": row.to_dict()})


@settings_bp.put("/<string:key>")
@require_auth
@require_permission("MANAGE_SETTINGS")
def put_setting_route(key: str):
    payload = request.get_json(silent=True) or {}
    if "value" not in payload:
        return jsonify({"error": "value is required"}), 400
    try:
        row = settings_service.upsert_setting(key, payload["value"])
    except ValidationError as exc:
        return jsonify({"error": str(exc)}), 400
    return jsonify({"setting": row.to_dict()})


@settings_bp.put("")
@require_auth
@require_permission("MANAGE_SETTINGS")
def put_settings_route():
    # The settings page saves every field at once: {"values": {"store_name": "...", ...}}
    payload = request.get_json(silent=True) or {}
    try:
        rows = settings_service.upsert_many(payload.get("values"))
    except ValidationError as exc:
        return jsonify({"error": str(exc)}), 400
    return jsonify({"items": [row.to_dict() for row in rows], "count": len(rows)})
