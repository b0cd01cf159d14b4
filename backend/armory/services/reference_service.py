# Overview: Service-layer operations for reference data (sites, asset types, personnel).

from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import AssetType, Personnel, Site
from ..models.reference import ASSET_CATEGORIES
from ..validation import ValidationError, optional_text, require_int, require_text, validate_choice
from . import access_guard
from .access_guard import Actor
from .errors import NotFoundError


def get_site(site_id: int, *, require_active: bool = True) -> Site:
    site = db.session.get(Site, site_id)
    if site is None:
        raise NotFoundError(f"Site {site_id} not found")
    if require_active and not site.is_active:
        raise ValidationError(f"Site {site_id} is inactive")
    return site


def get_asset_type(asset_type_id: int, *, require_active: bool = True) -> AssetType:
    asset_type = db.session.get(AssetType, asset_type_id)
    if asset_type is None:
        raise NotFoundError(f"Asset type {asset_type_id} not found")
    if require_active and not asset_type.is_active:
        raise ValidationError(f"Asset type {asset_type_id} is inactive")
    return asset_type


def get_personnel(personnel_id: int, *, require_active: bool = True) -> Personnel:
    person = db.session.get(Personnel, personnel_id)
    if person is None:
        raise NotFoundError(f"Personnel {personnel_id} not found")
    if require_active and not person.is_active:
        raise ValidationError(f"Personnel {personnel_id} is inactive")
    return person


def validate_category(category) -> str | None:
    return validate_choice(category, "category", ASSET_CATEGORIES)


def list_asset_types(actor: Actor, *, category: str | None = None) -> list[AssetType]:
    access_guard.resolve_scope(actor, "VIEW_REFERENCE")
    category = validate_category(category)
    q = db.session.query(AssetType).filter(AssetType.is_active.is_(True))
    if category:
        q = q.filter(AssetType.category == category)
    return q.order_by(AssetType.category.asc(), AssetType.name.asc()).all()


def list_sites(actor: Actor) -> list[Site]:
    """Admins see every active site; everyone else sees only their home site."""
    scope = access_guard.resolve_scope(actor, "VIEW_REFERENCE")
    q = db.session.query(Site).filter(Site.is_active.is_(True))
    if scope is not None:
        q = q.filter(Site.id.in_(scope))
    return q.order_by(Site.name.asc()).all()


def list_personnel(actor: Actor, *, site_id: int | None = None) -> list[Personnel]:
    scope = access_guard.resolve_scope(actor, "VIEW_REFERENCE", site_id)
    q = db.session.query(Personnel).filter(Personnel.is_active.is_(True))
    if scope is not None:
        q = q.filter(Personnel.site_id.in_(scope))
    return q.order_by(Personnel.rank.asc(), Personnel.last_name.asc(), Personnel.first_name.asc()).all()


def create_personnel(
    actor: Actor,
    *,
    service_number,
    first_name,
    last_name,
    site_id,
    rank=None,
    unit=None,
) -> Personnel:
    site_id = require_int(site_id, "site_id")
    access_guard.require(actor, "MANAGE_PERSONNEL", site_id)
    get_site(site_id)

    person = Personnel(
        service_number=require_text(service_number, "service_number", max_length=32),
        first_name=require_text(first_name, "first_name", max_length=64),
        last_name=require_text(last_name, "last_name", max_length=64),
        rank=optional_text(rank, "rank", max_length=32),
        unit=optional_text(unit, "unit", max_length=64),
        site_id=site_id,
    )
    db.session.add(person)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ValidationError("Service number already exists")
    return person
