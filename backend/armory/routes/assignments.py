# Overview: Flask API routes for personnel assignments; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, g

from ..decorators import error_response, require_actor, require_capability
from ..services import assignment_service
from ..services.ledger_service import get_ledger_store


assignments_bp = Blueprint("assignments", __name__, url_prefix="/api/assignments")


@assignments_bp.get("")
@require_actor
@require_capability("VIEW_TRANSACTIONS")
def list_assignments_route():
    args = request.args
    try:
        page = assignment_service.list_assignments(
            get_ledger_store(),
            g.actor,
            site_id=args.get("site_id"),
            personnel_id=args.get("personnel_id"),
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


@assignments_bp.post("")
@require_actor
@require_capability("CREATE_ASSIGNMENT")
def create_assignment_route():
    """
    Issue stock to a service member.

    Request body:
    {
        "asset_type_id": int,
        "personnel_id": int,
        "site_id": int,
        "quantity": int,
        "assigned_date": "YYYY-MM-DD" (optional),
        "purpose": str (optional),
        "serial_numbers": str (optional),
        "notes": str (optional)
    }

    Returns:
        201: Assignment created, ledger decremented
        409: Insufficient stock (nothing recorded)
    """
    data = request.get_json(silent=True) or {}
    try:
        assignment = assignment_service.create_assignment(
            get_ledger_store(),
            g.actor,
            asset_type_id=data.get("asset_type_id"),
            personnel_id=data.get("personnel_id"),
            site_id=data.get("site_id"),
            quantity=data.get("quantity"),
            assigned_date=data.get("assigned_date"),
            purpose=data.get("purpose"),
            serial_numbers=data.get("serial_numbers"),
            notes=data.get("notes"),
        )
        return jsonify(assignment.to_dict()), 201
    except Exception as e:
        return error_response(e)


@assignments_bp.get("/<int:assignment_id>")
@require_actor
@require_capability("VIEW_TRANSACTIONS")
def get_assignment_route(assignment_id: int):
    try:
        assignment = assignment_service.get_assignment(get_ledger_store(), g.actor, assignment_id)
        return jsonify(assignment.to_dict()), 200
    except Exception as e:
        return error_response(e)


@assignments_bp.post("/<int:assignment_id>/return")
@require_actor
@require_capability("RETURN_ASSIGNMENT")
def return_assignment_route(assignment_id: int):
    data = request.get_json(silent=True) or {}
    try:
        assignment = assignment_service.return_assignment(
            get_ledger_store(),
            g.actor,
            assignment_id,
            return_date=data.get("return_date"),
            notes=data.get("notes"),
        )
        return jsonify(assignment.to_dict()), 200
    except Exception as e:
        return error_response(e)
