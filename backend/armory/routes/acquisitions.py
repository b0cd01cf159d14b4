# Overview: Flask API routes for acquisitions; parses input and returns JSON responses.

"""
Acquisition API routes.
"""
from flask import Blueprint, request, jsonify, g

from ..decorators import error_response, require_actor, require_capability
from ..services import acquisition_service
from ..services.ledger_service import get_ledger_store


acquisitions_bp = Blueprint("acquisitions", __name__, url_prefix="/api/acquisitions")


@acquisitions_bp.get("")
@require_actor
@require_capability("VIEW_TRANSACTIONS")
def list_acquisitions_route():
    args = request.args
    try:
        page = acquisition_service.list_acquisitions(
            get_ledger_store(),
            g.actor,
            site_id=args.get("site_id"),
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


@acquisitions_bp.post("")
@require_actor
@require_capability("CREATE_ACQUISITION")
def create_acquisition_route():
    """
    Request a purchase.

    Request body:
    {
        "asset_type_id": int,
        "site_id": int,
        "quantity": int,
        "unit_cost": str|number,
        "supplier": str,
        "request_date": "YYYY-MM-DD" (optional),
        "purchase_order_number": str (optional),
        "notes": str (optional)
    }

    Returns:
        201: Acquisition created (pending)
        400: Invalid request
        403: Forbidden
    """
    data = request.get_json(silent=True) or {}
    try:
        acquisition = acquisition_service.create_acquisition(
            get_ledger_store(),
            g.actor,
            asset_type_id=data.get("asset_type_id"),
            site_id=data.get("site_id"),
            quantity=data.get("quantity"),
            unit_cost=data.get("unit_cost"),
            supplier=data.get("supplier"),
            request_date=data.get("request_date"),
            purchase_order_number=data.get("purchase_order_number"),
            notes=data.get("notes"),
        )
        return jsonify(acquisition.to_dict()), 201
    except Exception as e:
        return error_response(e)


@acquisitions_bp.get("/<int:acquisition_id>")
@require_actor
@require_capability("VIEW_TRANSACTIONS")
def get_acquisition_route(acquisition_id: int):
    try:
        acquisition = acquisition_service.get_acquisition(get_ledger_store(), g.actor, acquisition_id)
        return jsonify(acquisition.to_dict()), 200
    except Exception as e:
        return error_response(e)


@acquisitions_bp.post("/<int:acquisition_id>/approve")
@require_actor
@require_capability("APPROVE_ACQUISITION")
def approve_acquisition_route(acquisition_id: int):
    try:
        acquisition = acquisition_service.approve_acquisition(get_ledger_store(), g.actor, acquisition_id)
        return jsonify(acquisition.to_dict()), 200
    except Exception as e:
        return error_response(e)


@acquisitions_bp.post("/<int:acquisition_id>/receive")
@require_actor
@require_capability("RECEIVE_ACQUISITION")
def receive_acquisition_route(acquisition_id: int):
    """
    Receive an approved acquisition into the site's stock.

    Request body (optional):
    {
        "received_date": "YYYY-MM-DD"
    }

    Returns:
        200: Acquisition received, ledger replenished
        409: Not in APPROVED status
    """
    data = request.get_json(silent=True) or {}
    try:
        acquisition = acquisition_service.receive_acquisition(
            get_ledger_store(),
            g.actor,
            acquisition_id,
            received_date=data.get("received_date"),
        )
        return jsonify(acquisition.to_dict()), 200
    except Exception as e:
        return error_response(e)


@acquisitions_bp.post("/<int:acquisition_id>/cancel")
@require_actor
@require_capability("CANCEL_ACQUISITION")
def cancel_acquisition_route(acquisition_id: int):
    try:
        acquisition = acquisition_service.cancel_acquisition(get_ledger_store(), g.actor, acquisition_id)
        return jsonify(acquisition.to_dict()), 200
    except Exception as e:
        return error_response(e)
