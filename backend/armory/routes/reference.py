# Overview: Flask API routes for reference data (asset types, sites, personnel).

from flask import Blueprint, request, jsonify, g

from ..decorators import error_response, require_actor, require_capability
from ..services import reference_service


reference_bp = Blueprint("reference", __name__, url_prefix="/api/reference")


@reference_bp.get("/asset-types")
@require_actor
@require_capability("VIEW_REFERENCE")
def list_asset_types_route():
    try:
        asset_types = reference_service.list_asset_types(g.actor, category=request.args.get("category"))
        return jsonify({"items": [a.to_dict() for a in asset_types]}), 200
    except Exception as e:
        return error_response(e)


@reference_bp.get("/sites")
@require_actor
@require_capability("VIEW_REFERENCE")
def list_sites_route():
    try:
        sites = reference_service.list_sites(g.actor)
        return jsonify({"items": [s.to_dict() for s in sites]}), 200
    except Exception as e:
        return error_response(e)


@reference_bp.get("/personnel")
@require_actor
@require_capability("VIEW_REFERENCE")
def list_personnel_route():
    try:
        site_id = request.args.get("site_id", type=int)
        personnel = reference_service.list_personnel(g.actor, site_id=site_id)
        return jsonify({"items": [p.to_dict() for p in personnel]}), 200
    except Exception as e:
        return error_response(e)


@reference_bp.post("/personnel")
@require_actor
@require_capability("MANAGE_PERSONNEL")
def create_personnel_route():
    """
    Register a service member at a site.

    Request body:
    {
        "service_number": str,
        "first_name": str,
        "last_name": str,
        "site_id": int,
        "rank": str (optional),
        "unit": str (optional)
    }
    """
    data = request.get_json(silent=True) or {}
    try:
        person = reference_service.create_personnel(
            g.actor,
            service_number=data.get("service_number"),
            first_name=data.get("first_name"),
            last_name=data.get("last_name"),
            site_id=data.get("site_id"),
            rank=data.get("rank"),
            unit=data.get("unit"),
        )
        return jsonify(person.to_dict()), 201
    except Exception as e:
        return error_response(e)
