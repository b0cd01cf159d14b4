# Overview: Flask API routes for inter-site transfers; parses input and returns JSON responses.

"""
Inter-site transfer API routes.
"""
from flask import Blueprint, request, jsonify, g

from ..decorators import error_response, require_actor, require_capability
from ..services import transfer_service
from ..services.ledger_service import get_ledger_store


transfers_bp = Blueprint("transfers", __name__, url_prefix="/api/transfers")


@transfers_bp.get("")
@require_actor
@require_capability("VIEW_TRANSACTIONS")
def list_transfers_route():
    """
    List transfers where the actor's site is source or destination.

    Query params: site_id, status, start_date, end_date, category, page, page_size
    """
    args = request.args
    try:
        page = transfer_service.list_transfers(
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


@transfers_bp.post("")
@require_actor
@require_capability("CREATE_TRANSFER")
def create_transfer_route():
    """
    Create a new transfer.

    Request body:
    {
        "asset_type_id": int,
        "from_site_id": int,
        "to_site_id": int,
        "quantity": int,
        "transfer_date": "YYYY-MM-DD" (optional),
        "reason": str (optional),
        "notes": str (optional)
    }

    Returns:
        201: Transfer created (pending)
        400: Invalid request
        403: Forbidden
        409: Source does not currently hold the quantity
    """
    data = request.get_json(silent=True) or {}
    try:
        transfer = transfer_service.create_transfer(
            get_ledger_store(),
            g.actor,
            asset_type_id=data.get("asset_type_id"),
            from_site_id=data.get("from_site_id"),
            to_site_id=data.get("to_site_id"),
            quantity=data.get("quantity"),
            transfer_date=data.get("transfer_date"),
            reason=data.get("reason"),
            notes=data.get("notes"),
        )
        return jsonify(transfer.to_dict()), 201
    except Exception as e:
        return error_response(e)


@transfers_bp.get("/<int:transfer_id>")
@require_actor
@require_capability("VIEW_TRANSACTIONS")
def get_transfer_route(transfer_id: int):
    try:
        transfer = transfer_service.get_transfer(get_ledger_store(), g.actor, transfer_id)
        return jsonify(transfer.to_dict()), 200
    except Exception as e:
        return error_response(e)


@transfers_bp.post("/<int:transfer_id>/approve")
@require_actor
@require_capability("APPROVE_TRANSFER")
def approve_transfer_route(transfer_id: int):
    try:
        transfer = transfer_service.approve_transfer(get_ledger_store(), g.actor, transfer_id)
        return jsonify(transfer.to_dict()), 200
    except Exception as e:
        return error_response(e)


@transfers_bp.post("/<int:transfer_id>/complete")
@require_actor
@require_capability("COMPLETE_TRANSFER")
def complete_transfer_route(transfer_id: int):
    """
    Complete an approved transfer (destination site).

    Returns:
        200: Stock moved from source to destination
        403: Actor has no authority over the destination site
        409: Not APPROVED, or source stock no longer sufficient
    """
    try:
        transfer = transfer_service.complete_transfer(get_ledger_store(), g.actor, transfer_id)
        return jsonify(transfer.to_dict()), 200
    except Exception as e:
        return error_response(e)


@transfers_bp.post("/<int:transfer_id>/reject")
@require_actor
@require_capability("REJECT_TRANSFER")
def reject_transfer_route(transfer_id: int):
    data = request.get_json(silent=True) or {}
    try:
        transfer = transfer_service.reject_transfer(
            get_ledger_store(),
            g.actor,
            transfer_id,
            reason=data.get("reason"),
        )
        return jsonify(transfer.to_dict()), 200
    except Exception as e:
        return error_response(e)
