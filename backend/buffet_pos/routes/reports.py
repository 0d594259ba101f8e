# Overview: Flask API routes for reports; parses input and returns JSON responses.

# backend/buffet_pos/routes/reports.py
"""
Reporting routes.

SECURITY: Requires VIEW_REPORTS (admin, manager).
"""
from flask import Blueprint, request, jsonify, current_app

from ..decorators import require_auth, require_permission
from ..services import reporting_service
from ..services.reporting_service import ReportError


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/summary")
@require_auth
@require_permission("VIEW_REPORTS")
def summary_route():
    """
    Revenue, expenses and profit between two dates.

    Query params:
    - start: YYYY-MM-DD (required)
    - end: YYYY-MM-DD (required, inclusive)
    """
    try:
        report = reporting_service.summary(
            start=request.args.get("start"),
            end=request.args.get("end"),
        )
        return jsonify(report), 200
    except ReportError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to build summary report")
        return jsonify({"error": "Internal server error"}), 500
