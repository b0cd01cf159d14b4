# Overview: Flask API routes for dashboard metrics and the activity feed.

from flask import Blueprint, request, jsonify, g

from ..decorators import error_response, require_actor, require_capability
from ..services import reporting_service
from ..services.ledger_service import get_ledger_store


dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


@dashboard_bp.get("/metrics")
@require_actor
@require_capability("VIEW_METRICS")
def metrics_route():
    """
    Opening/closing balance and movement totals for the actor's scope.

    Query params: site_id, start_date, end_date (YYYY-MM-DD, inclusive), category
    """
    args = request.args
    try:
        result = reporting_service.compute_metrics(
            get_ledger_store(),
            g.actor,
            site_id=args.get("site_id"),
            start=args.get("start_date"),
            end=args.get("end_date"),
            category=args.get("category"),
        )
        return jsonify(result), 200
    except Exception as e:
        return error_response(e)


@dashboard_bp.get("/activity")
@require_actor
@require_capability("VIEW_TRANSACTIONS")
def activity_route():
    args = request.args
    try:
        items = reporting_service.recent_activity(
            get_ledger_store(),
            g.actor,
            limit=args.get("limit"),
            site_id=args.get("site_id"),
        )
        return jsonify({"items": items}), 200
    except Exception as e:
        return error_response(e)
