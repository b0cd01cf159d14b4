# Overview: Acquisition (purchase) workflow; receiving replenishes the site ledger.

"""
Acquisition workflow.

LIFECYCLE:
1. PENDING: Requested by a logistics officer or commander
2. APPROVED: Site commander (or admin) approved the purchase
3. RECEIVED: Stock arrived; replenishes the (asset type, site) ledger row
4. CANCELLED: Withdrawn before receipt (from pending or approved)

The status change and the ledger replenishment commit in one unit of work,
so a received acquisition always has its stock on the ledger.
"""
from __future__ import annotations

from ..models import Acquisition
from ..money import to_cost
from ..time_utils import today, utcnow
from ..validation import (
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
from .lifecycle_service import (
    ACQUISITION_APPROVED,
    ACQUISITION_CANCELLED,
    ACQUISITION_LIFECYCLE,
    ACQUISITION_RECEIVED,
)
from .pagination import Page, apply_category, apply_window, paginate, parse_filters
from .reference_service import get_asset_type, get_site


def create_acquisition(
    store: LedgerStore,
    actor: Actor,
    asset_type_id,
    site_id,
    quantity,
    unit_cost,
    supplier,
    request_date=None,
    purchase_order_number=None,
    notes=None,
) -> Acquisition:
    """
    Create a purchase request (status: PENDING).

    Args:
        store: Ledger store for the current request
        actor: Requesting user
        asset_type_id: Asset type being purchased
        site_id: Receiving site
        quantity: Whole units, positive
        unit_cost: Non-negative unit cost
        supplier: Supplier name
        request_date: Business date (defaults to today)

    Returns:
        Acquisition: The created acquisition

    Raises:
        AuthorizationError: Actor may not request purchases for the site
        ValidationError: Malformed input or inactive reference data
    """
    site_id = require_int(site_id, "site_id")
    access_guard.require(actor, "CREATE_ACQUISITION", site_id)

    asset_type_id = require_int(asset_type_id, "asset_type_id")
    quantity = require_positive_int(quantity, "quantity")
    cost = parse_cost(unit_cost, "unit_cost")
    supplier = require_text(supplier, "supplier")
    request_date = parse_date(request_date, "request_date") or today()
    purchase_order_number = optional_text(purchase_order_number, "purchase_order_number", max_length=64)
    notes = optional_text(notes, "notes")

    get_asset_type(asset_type_id)
    get_site(site_id)

    def _op():
        with store.unit_of_work():
            acquisition = Acquisition(
                asset_type_id=asset_type_id,
                site_id=site_id,
                quantity=quantity,
                unit_cost=cost,
                total_cost=to_cost(cost * quantity),
                supplier=supplier,
                purchase_order_number=purchase_order_number,
                notes=notes,
                request_date=request_date,
                status=ACQUISITION_LIFECYCLE.initial,
                requested_by=actor.user_id,
            )
            store.session.add(acquisition)
        return acquisition

    return run_with_retry(_op, attempts=configured_attempts())


def approve_acquisition(store: LedgerStore, actor: Actor, acquisition_id) -> Acquisition:
    """Move PENDING -> APPROVED. Requires commander authority over the site."""
    acquisition = get_acquisition(store, actor, acquisition_id, capability="APPROVE_ACQUISITION")

    def _op():
        with store.unit_of_work():
            record = load_for_update(store.session, Acquisition, acquisition.id, "Acquisition")
            ACQUISITION_LIFECYCLE.check(record.status, ACQUISITION_APPROVED)
            record.status = ACQUISITION_APPROVED
            record.approved_by = actor.user_id
            record.approved_at = utcnow()
        return record

    return run_with_retry(_op, attempts=configured_attempts())


def receive_acquisition(store: LedgerStore, actor: Actor, acquisition_id, received_date=None) -> Acquisition:
    """
    Move APPROVED -> RECEIVED and replenish the site ledger at the purchase cost.

    If the replenishment fails the acquisition stays APPROVED.
    """
    acquisition = get_acquisition(store, actor, acquisition_id, capability="RECEIVE_ACQUISITION")
    received_date = parse_date(received_date, "received_date") or today()
    key = (acquisition.asset_type_id, acquisition.site_id)

    def _op():
        with store.unit_of_work(key):
            record = load_for_update(store.session, Acquisition, acquisition.id, "Acquisition")
            ACQUISITION_LIFECYCLE.check(record.status, ACQUISITION_RECEIVED)
            store.replenish(record.asset_type_id, record.site_id, record.quantity, record.unit_cost)
            record.status = ACQUISITION_RECEIVED
            record.received_date = received_date
        return record

    return run_with_retry(_op, attempts=configured_attempts())


def cancel_acquisition(store: LedgerStore, actor: Actor, acquisition_id) -> Acquisition:
    acquisition = get_acquisition(store, actor, acquisition_id, capability="CANCEL_ACQUISITION")

    def _op():
        with store.unit_of_work():
            record = load_for_update(store.session, Acquisition, acquisition.id, "Acquisition")
            ACQUISITION_LIFECYCLE.check(record.status, ACQUISITION_CANCELLED)
            record.status = ACQUISITION_CANCELLED
            record.cancelled_by = actor.user_id
            record.cancelled_at = utcnow()
        return record

    return run_with_retry(_op, attempts=configured_attempts())


def get_acquisition(
    store: LedgerStore,
    actor: Actor,
    acquisition_id,
    *,
    capability: str = "VIEW_TRANSACTIONS",
) -> Acquisition:
    acquisition_id = require_int(acquisition_id, "acquisition_id")
    acquisition = load_for_update(store.session, Acquisition, acquisition_id, "Acquisition", for_update=False)
    access_guard.require(actor, capability, acquisition.site_id)
    return acquisition


def list_acquisitions(
    store: LedgerStore,
    actor: Actor,
    *,
    site_id=None,
    status=None,
    start_date=None,
    end_date=None,
    category=None,
    page=None,
    page_size=None,
) -> Page:
    """Acquisitions in the actor's scope, newest first, filtered by request_date."""
    filters = parse_filters(
        ACQUISITION_LIFECYCLE,
        status=status,
        start_date=start_date,
        end_date=end_date,
        category=category,
        page=page,
        page_size=page_size,
    )
    scope = access_guard.resolve_scope(actor, "VIEW_TRANSACTIONS", optional_int(site_id, "site_id"))

    q = store.session.query(Acquisition)
    if scope is not None:
        q = q.filter(Acquisition.site_id.in_(scope))
    if filters.status:
        q = q.filter(Acquisition.status == filters.status)
    q = apply_window(q, Acquisition.request_date, filters.window)
    q = apply_category(q, Acquisition.asset_type_id, filters.category)
    return paginate(q, filters.page, Acquisition.created_at.desc(), Acquisition.id.desc())
