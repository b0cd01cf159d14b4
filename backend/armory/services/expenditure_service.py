# Overview: Expenditure recording; a single irreversible ledger decrement.

from __future__ import annotations

from ..models import Expenditure, User
from ..money import to_cost
from ..time_utils import today
from ..validation import (
    ValidationError,
    optional_int,
    optional_text,
    parse_cost,
    parse_date,
    require_int,
    require_positive_int,
    require_text,
)
from . import access_guard
from .access_guard import Actor
from .concurrency import configured_attempts, load_for_update, run_with_retry
from .ledger_service import LedgerStore
from .lifecycle_service import EXPENDITURE_LIFECYCLE
from .pagination import Page, apply_category, apply_window, paginate, parse_filters
from .reference_service import get_asset_type, get_site


def record_expenditure(
    store: LedgerStore,
    actor: Actor,
    asset_type_id,
    site_id,
    quantity,
    purpose,
    expenditure_date=None,
    operation_name=None,
    authorized_by=None,
    unit_cost=None,
    justification=None,
) -> Expenditure:
    """
    Consume stock at a site.

    The record exists only if the decrement succeeded; both commit together.
    unit_cost defaults to the site's average cost at the moment of the
    decrement, authorized_by to the recording user.

    Raises:
        AuthorizationError: Actor has no authority over the site
        InsufficientStock: Site holds less than `quantity` (no record written)
    """
    site_id = require_int(site_id, "site_id")
    access_guard.require(actor, "RECORD_EXPENDITURE", site_id)

    asset_type_id = require_int(asset_type_id, "asset_type_id")
    quantity = require_positive_int(quantity, "quantity")
    purpose = require_text(purpose, "purpose", max_length=2000)
    expenditure_date = parse_date(expenditure_date, "expenditure_date") or today()
    operation_name = optional_text(operation_name, "operation_name", max_length=255)
    justification = optional_text(justification, "justification")
    explicit_cost = parse_cost(unit_cost, "unit_cost", required=False)
    authorized_by = optional_int(authorized_by, "authorized_by")
    if authorized_by is None:
        authorized_by = actor.user_id
    elif store.session.get(User, authorized_by) is None:
        raise ValidationError(f"authorized_by user {authorized_by} does not exist")

    get_asset_type(asset_type_id)
    get_site(site_id)

    def _op():
        with store.unit_of_work((asset_type_id, site_id)):
            cost = explicit_cost
            if cost is None:
                cost = store.average_cost(asset_type_id, site_id)
            store.reserve_and_decrement(asset_type_id, site_id, quantity)
            expenditure = Expenditure(
                asset_type_id=asset_type_id,
                site_id=site_id,
                quantity=quantity,
                unit_cost=cost,
                total_cost=to_cost(cost * quantity),
                purpose=purpose,
                operation_name=operation_name,
                justification=justification,
                authorized_by=authorized_by,
                recorded_by=actor.user_id,
                expenditure_date=expenditure_date,
            )
            store.session.add(expenditure)
        return expenditure

    return run_with_retry(_op, attempts=configured_attempts())


def get_expenditure(store: LedgerStore, actor: Actor, expenditure_id) -> Expenditure:
    expenditure_id = require_int(expenditure_id, "expenditure_id")
    expenditure = load_for_update(store.session, Expenditure, expenditure_id, "Expenditure", for_update=False)
    access_guard.require(actor, "VIEW_TRANSACTIONS", expenditure.site_id)
    return expenditure


def list_expenditures(
    store: LedgerStore,
    actor: Actor,
    *,
    site_id=None,
    operation_name=None,
    status=None,
    start_date=None,
    end_date=None,
    category=None,
    page=None,
    page_size=None,
) -> Page:
    """Expenditures in scope, newest first; operation_name is a case-insensitive substring match."""
    filters = parse_filters(
        EXPENDITURE_LIFECYCLE,
        status=status,
        start_date=start_date,
        end_date=end_date,
        category=category,
        page=page,
        page_size=page_size,
    )
    operation_name = optional_text(operation_name, "operation_name", max_length=255)
    scope = access_guard.resolve_scope(actor, "VIEW_TRANSACTIONS", optional_int(site_id, "site_id"))

    q = store.session.query(Expenditure)
    if scope is not None:
        q = q.filter(Expenditure.site_id.in_(scope))
    if operation_name:
        q = q.filter(Expenditure.operation_name.ilike(f"%{operation_name}%"))
    q = apply_window(q, Expenditure.expenditure_date, filters.window)
    q = apply_category(q, Expenditure.asset_type_id, filters.category)
    return paginate(q, filters.page, Expenditure.created_at.desc(), Expenditure.id.desc())
