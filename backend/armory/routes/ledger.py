# Overview: Flask API routes for ledger inspection; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, g

from ..decorators import error_response, require_actor, require_capability
from ..services import reporting_service
from ..services.ledger_service import get_ledger_store

"""
Ledger snapshot semantics:
- Non-admin actors only ever see their home site; asking for another site is 403.
- Rows are current state (quantity, average unit cost), one per (asset type, site).
"""

ledger_bp = Blueprint("ledger", __name__, url_prefix="/api/ledger")


@ledger_bp.get("")
@require_actor
@require_capability("VIEW_INVENTORY")
def list_ledger_route():
    args = request.args
    try:
        rows = reporting_service.inventory_overview(
            get_ledger_store(),
            g.actor,
            site_id=args.get("site_id"),
            asset_type_id=args.get("asset_type_id"),
            category=args.get("category"),
        )
        return jsonify({"items": rows, "count": len(rows)}), 200
    except Exception as e:
        return error_response(e)
