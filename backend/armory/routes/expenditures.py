# Overview: Flask API routes for expenditures; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, g

from ..decorators import error_response, require_actor, require_capability
from ..services import expenditure_service
from ..services.ledger_service import get_ledger_store


expenditures_bp = Blueprint("expenditures", __name__, url_prefix="/api/expenditures")


@expenditures_bp.get("")
@require_actor
@require_capability("VIEW_TRANSACTIONS")
def list_expenditures_route():
    args = request.args
    try:
        page = expenditure_service.list_expenditures(
            get_ledger_store(),
            g.actor,
            site_id=args.get("site_id"),
            operation_name=args.get("operation_name"),
            status=args.get("status"),
            start_date=args.get("start_date"),
            end_date=args.get("end_date"),
            category=args.get("category"),
            page=args.get("page"),
            page_size=args.get("page_size"),
        )
        return jsonify(page.to_dict()), 200
    except Exception as e:
        return error_response(e)


@expenditures_bp.post("")
@require_actor
@require_capability("RECORD_EXPENDITURE")
def record_expenditure_route():
    """
    Record consumption of stock.

    Request body:
    {
        "asset_type_id": int,
        "site_id": int,
        "quantity": int,
        "purpose": str,
        "expenditure_date": "YYYY-MM-DD" (optional),
        "operation_name": str (optional),
        "authorized_by": int (optional, defaults to the caller),
        "unit_cost": str|number (optional, defaults to the site's average cost),
        "justification": str (optional)
    }

    Returns:
        201: Expenditure recorded, ledger decremented
        409: Insufficient stock (nothing recorded)
    """
    data = request.get_json(silent=True) or {}
    try:
        expenditure = expenditure_service.record_expenditure(
            get_ledger_store(),
            g.actor,
            asset_type_id=data.get("asset_type_id"),
            site_id=data.get("site_id"),
            quantity=data.get("quantity"),
            purpose=data.get("purpose"),
            expenditure_date=data.get("expenditure_date"),
            operation_name=data.get("operation_name"),
            authorized_by=data.get("authorized_by"),
            unit_cost=data.get("unit_cost"),
            justification=data.get("justification"),
        )
        return jsonify(expenditure.to_dict()), 201
    except Exception as e:
        return error_response(e)


@expenditures_bp.get("/<int:expenditure_id>")
@require_actor
@require_capability("VIEW_TRANSACTIONS")
def get_expenditure_route(expenditure_id: int):
    try:
        expenditure = expenditure_service.get_expenditure(get_ledger_store(), g.actor, expenditure_id)
        return jsonify(expenditure.to_dict()), 200
    except Exception as e:
        return error_response(e)
