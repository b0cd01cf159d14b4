# Overview: Inter-site transfer workflow; completion moves stock between two ledger rows.

"""
Inter-site transfer service.

Manage movements of stock between sites with source-side approval and
destination-side receipt. Stock moves only at completion.

LIFECYCLE:
1. PENDING: Transfer requested by the source site
2. APPROVED: Source site authority released the stock
3. COMPLETED: Destination site authority received it (decrement source,
   replenish destination at the source's average cost, one unit of work)
4. REJECTED: Refused by either site before completion
"""
from __future__ import annotations

import secrets
import string

from sqlalchemy import or_

from ..models import Transfer
from ..time_utils import today, utcnow
from ..validation import (
    ValidationError,
    optional_int,
    optional_text,
    parse_date,
    require_int,
    require_positive_int,
)
from . import access_guard
from .access_guard import Actor
from .concurrency import configured_attempts, load_for_update, run_with_retry
from .errors import InsufficientStock
from .ledger_service import LedgerStore
from .lifecycle_service import (
    TRANSFER_APPROVED,
    TRANSFER_COMPLETED,
    TRANSFER_LIFECYCLE,
    TRANSFER_REJECTED,
)
from .pagination import Page, apply_category, apply_window, paginate, parse_filters
from .reference_service import get_asset_type, get_site


TRACKING_ALPHABET = string.ascii_uppercase + string.digits


def generate_tracking_code() -> str:
    """TRF-<epoch ms>-<6 random upper-case alphanumerics>."""
    millis = int(utcnow().timestamp() * 1000)
    suffix = "".join(secrets.choice(TRACKING_ALPHABET) for _ in range(6))
    return f"TRF-{millis}-{suffix}"


def create_transfer(
    store: LedgerStore,
    actor: Actor,
    asset_type_id,
    from_site_id,
    to_site_id,
    quantity,
    transfer_date=None,
    reason=None,
    notes=None,
) -> Transfer:
    """
    Create a transfer request (status: PENDING).

    Availability at the source is checked here as a courtesy only; nothing is
    reserved, and the binding check happens again at completion.

    Args:
        store: Ledger store for the current request
        actor: User initiating the transfer (needs source-site authority)
        asset_type_id: Asset type to move
        from_site_id: Source site
        to_site_id: Destination site (must differ from source)
        quantity: Whole units, positive

    Returns:
        Transfer: The created transfer

    Raises:
        AuthorizationError: Actor has no authority over the source site
        ValidationError: Same site on both ends, malformed input
        InsufficientStock: Source currently holds less than `quantity`
    """
    from_site_id = require_int(from_site_id, "from_site_id")
    to_site_id = require_int(to_site_id, "to_site_id")
    access_guard.require(actor, "CREATE_TRANSFER", from_site_id)

    if from_site_id == to_site_id:
        raise ValidationError("Cannot transfer to the same site")

    asset_type_id = require_int(asset_type_id, "asset_type_id")
    quantity = require_positive_int(quantity, "quantity")
    transfer_date = parse_date(transfer_date, "transfer_date") or today()
    reason = optional_text(reason, "reason")
    notes = optional_text(notes, "notes")

    get_asset_type(asset_type_id)
    get_site(from_site_id)
    get_site(to_site_id)

    available = store.quantity_on_hand(asset_type_id, from_site_id)
    if available < quantity:
        raise InsufficientStock(
            asset_type_id=asset_type_id,
            site_id=from_site_id,
            available=available,
            requested=quantity,
        )

    def _op():
        with store.unit_of_work():
            transfer = Transfer(
                asset_type_id=asset_type_id,
                from_site_id=from_site_id,
                to_site_id=to_site_id,
                quantity=quantity,
                status=TRANSFER_LIFECYCLE.initial,
                tracking_code=generate_tracking_code(),
                transfer_date=transfer_date,
                reason=reason,
                notes=notes,
                initiated_by=actor.user_id,
            )
            store.session.add(transfer)
        return transfer

    return run_with_retry(_op, attempts=configured_attempts())


def approve_transfer(store: LedgerStore, actor: Actor, transfer_id) -> Transfer:
    """PENDING -> APPROVED, by the source site's authority."""
    transfer = _load(store, transfer_id)
    access_guard.require(actor, "APPROVE_TRANSFER", transfer.from_site_id)

    def _op():
        with store.unit_of_work():
            record = load_for_update(store.session, Transfer, transfer.id, "Transfer")
            TRANSFER_LIFECYCLE.check(record.status, TRANSFER_APPROVED)
            record.status = TRANSFER_APPROVED
            record.approved_by = actor.user_id
            record.approved_at = utcnow()
        return record

    return run_with_retry(_op, attempts=configured_attempts())


def complete_transfer(store: LedgerStore, actor: Actor, transfer_id) -> Transfer:
    """
    APPROVED -> COMPLETED, by the destination site's authority.

    Both ledger rows are locked (sorted) for the whole unit of work. The
    destination is replenished at the source's average cost as of now, so
    the move never changes the source's cost basis.

    Raises:
        InsufficientStock: Source no longer holds the quantity; the transfer
            stays APPROVED and neither ledger row changes.
    """
    transfer = _load(store, transfer_id)
    access_guard.require(actor, "COMPLETE_TRANSFER", transfer.to_site_id)

    source_key = (transfer.asset_type_id, transfer.from_site_id)
    destination_key = (transfer.asset_type_id, transfer.to_site_id)

    def _op():
        with store.unit_of_work(source_key, destination_key):
            record = load_for_update(store.session, Transfer, transfer.id, "Transfer")
            TRANSFER_LIFECYCLE.check(record.status, TRANSFER_COMPLETED)

            unit_cost = store.average_cost(record.asset_type_id, record.from_site_id)
            store.reserve_and_decrement(record.asset_type_id, record.from_site_id, record.quantity)
            store.replenish(record.asset_type_id, record.to_site_id, record.quantity, unit_cost)

            record.status = TRANSFER_COMPLETED
            record.unit_cost = unit_cost
            record.received_by = actor.user_id
            record.completed_at = utcnow()
        return record

    return run_with_retry(_op, attempts=configured_attempts())


def reject_transfer(store: LedgerStore, actor: Actor, transfer_id, reason=None) -> Transfer:
    """PENDING|APPROVED -> REJECTED, by authority over either site. No ledger effect."""
    transfer = _load(store, transfer_id)
    access_guard.require_any_site(actor, "REJECT_TRANSFER", [transfer.from_site_id, transfer.to_site_id])
    reason = optional_text(reason, "reason")

    def _op():
        with store.unit_of_work():
            record = load_for_update(store.session, Transfer, transfer.id, "Transfer")
            TRANSFER_LIFECYCLE.check(record.status, TRANSFER_REJECTED)
            record.status = TRANSFER_REJECTED
            record.rejected_by = actor.user_id
            record.rejected_at = utcnow()
            record.rejection_reason = reason
        return record

    return run_with_retry(_op, attempts=configured_attempts())


def get_transfer(store: LedgerStore, actor: Actor, transfer_id) -> Transfer:
    transfer = _load(store, transfer_id)
    access_guard.require_any_site(actor, "VIEW_TRANSACTIONS", [transfer.from_site_id, transfer.to_site_id])
    return transfer


def list_transfers(
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
    """Transfers touching the actor's sites on either end, newest first."""
    filters = parse_filters(
        TRANSFER_LIFECYCLE,
        status=status,
        start_date=start_date,
        end_date=end_date,
        category=category,
        page=page,
        page_size=page_size,
    )
    scope = access_guard.resolve_scope(actor, "VIEW_TRANSACTIONS", optional_int(site_id, "site_id"))

    q = store.session.query(Transfer)
    if scope is not None:
        q = q.filter(or_(Transfer.from_site_id.in_(scope), Transfer.to_site_id.in_(scope)))
    if filters.status:
        q = q.filter(Transfer.status == filters.status)
    q = apply_window(q, Transfer.transfer_date, filters.window)
    q = apply_category(q, Transfer.asset_type_id, filters.category)
    return paginate(q, filters.page, Transfer.created_at.desc(), Transfer.id.desc())


def _load(store: LedgerStore, transfer_id) -> Transfer:
    transfer_id = require_int(transfer_id, "transfer_id")
    return load_for_update(store.session, Transfer, transfer_id, "Transfer", for_update=False)
