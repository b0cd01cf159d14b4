# Overview: Personnel assignment workflow; issue decrements, return replenishes.

"""
Assignment workflow.

LIFECYCLE:
1. ACTIVE: Stock issued to a service member (ledger decremented at creation)
2. RETURNED: Stock handed back (ledger replenished at the site's current
   average cost, so the cost basis does not move)

Unlike transfers, the decrement happens at creation: if the site cannot
cover the quantity no assignment record is written.
"""
from __future__ import annotations

from ..models import Assignment
from ..time_utils import today, utcnow
from ..validation import (
    optional_int,
    optional_text,
    parse_date,
    require_int,
    require_positive_int,
)
from . import access_guard
from .access_guard import Actor
from .concurrency import configured_attempts, load_for_update, run_with_retry
from .ledger_service import LedgerStore
from .lifecycle_service import ASSIGNMENT_LIFECYCLE, ASSIGNMENT_RETURNED
from .pagination import Page, apply_category, apply_window, paginate, parse_filters
from .reference_service import get_asset_type, get_personnel, get_site


def create_assignment(
    store: LedgerStore,
    actor: Actor,
    asset_type_id,
    personnel_id,
    site_id,
    quantity,
    assigned_date=None,
    purpose=None,
    serial_numbers=None,
    notes=None,
) -> Assignment:
    """
    Issue stock to a service member (status: ACTIVE).

    Args:
        store: Ledger store for the current request
        actor: Issuing user (needs authority over the site)
        asset_type_id: Asset type issued
        personnel_id: Receiving service member (must be active)
        site_id: Site the stock leaves
        quantity: Whole units, positive

    Returns:
        Assignment: The created assignment

    Raises:
        AuthorizationError: Actor has no authority over the site
        InsufficientStock: Site holds less than `quantity` (nothing persisted)
    """
    site_id = require_int(site_id, "site_id")
    access_guard.require(actor, "CREATE_ASSIGNMENT", site_id)

    asset_type_id = require_int(asset_type_id, "asset_type_id")
    personnel_id = require_int(personnel_id, "personnel_id")
    quantity = require_positive_int(quantity, "quantity")
    assigned_date = parse_date(assigned_date, "assigned_date") or today()
    purpose = optional_text(purpose, "purpose")
    serial_numbers = optional_text(serial_numbers, "serial_numbers")
    notes = optional_text(notes, "notes")

    get_asset_type(asset_type_id)
    get_site(site_id)
    get_personnel(personnel_id)

    def _op():
        with store.unit_of_work((asset_type_id, site_id)):
            store.reserve_and_decrement(asset_type_id, site_id, quantity)
            assignment = Assignment(
                asset_type_id=asset_type_id,
                personnel_id=personnel_id,
                site_id=site_id,
                quantity=quantity,
                status=ASSIGNMENT_LIFECYCLE.initial,
                purpose=purpose,
                serial_numbers=serial_numbers,
                notes=notes,
                assigned_by=actor.user_id,
                assigned_date=assigned_date,
            )
            store.session.add(assignment)
        return assignment

    return run_with_retry(_op, attempts=configured_attempts())


def return_assignment(store: LedgerStore, actor: Actor, assignment_id, return_date=None, notes=None) -> Assignment:
    """ACTIVE -> RETURNED; puts the original quantity back at the site's average cost."""
    assignment = _load(store, assignment_id)
    access_guard.require(actor, "RETURN_ASSIGNMENT", assignment.site_id)
    return_date = parse_date(return_date, "return_date") or today()
    notes = optional_text(notes, "notes")
    key = (assignment.asset_type_id, assignment.site_id)

    def _op():
        with store.unit_of_work(key):
            record = load_for_update(store.session, Assignment, assignment.id, "Assignment")
            ASSIGNMENT_LIFECYCLE.check(record.status, ASSIGNMENT_RETURNED)

            unit_cost = store.average_cost(record.asset_type_id, record.site_id)
            store.replenish(record.asset_type_id, record.site_id, record.quantity, unit_cost)

            record.status = ASSIGNMENT_RETURNED
            record.return_date = return_date
            record.returned_by = actor.user_id
            if notes:
                record.notes = f"{record.notes}\n{notes}" if record.notes else notes
        return record

    return run_with_retry(_op, attempts=configured_attempts())


def get_assignment(store: LedgerStore, actor: Actor, assignment_id) -> Assignment:
    assignment = _load(store, assignment_id)
    access_guard.require(actor, "VIEW_TRANSACTIONS", assignment.site_id)
    return assignment


def list_assignments(
    store: LedgerStore,
    actor: Actor,
    *,
    site_id=None,
    personnel_id=None,
    status=None,
    start_date=None,
    end_date=None,
    category=None,
    page=None,
    page_size=None,
) -> Page:
    filters = parse_filters(
        ASSIGNMENT_LIFECYCLE,
        status=status,
        start_date=start_date,
        end_date=end_date,
        category=category,
        page=page,
        page_size=page_size,
    )
    personnel_id = optional_int(personnel_id, "personnel_id")
    scope = access_guard.resolve_scope(actor, "VIEW_TRANSACTIONS", optional_int(site_id, "site_id"))

    q = store.session.query(Assignment)
    if scope is not None:
        q = q.filter(Assignment.site_id.in_(scope))
    if personnel_id is not None:
        q = q.filter(Assignment.personnel_id == personnel_id)
    if filters.status:
        q = q.filter(Assignment.status == filters.status)
    q = apply_window(q, Assignment.assigned_date, filters.window)
    q = apply_category(q, Assignment.asset_type_id, filters.category)
    return paginate(q, filters.page, Assignment.created_at.desc(), Assignment.id.desc())


def _load(store: LedgerStore, assignment_id) -> Assignment:
    assignment_id = require_int(assignment_id, "assignment_id")
    return load_for_update(store.session, Assignment, assignment_id, "Assignment", for_update=False)
