# Overview: Aggregation engine; dashboard metrics, activity feed and inventory overview.

"""
Reporting is read-only and runs outside the ledger critical section.

The metric arithmetic lives in summarize(), a pure function over a ledger
snapshot, a list of Movement records and a DateWindow. The loaders below
only fetch rows in the actor's scope and hand them over, so the numbers can
be tested without a database.

Dating rules:
- acquisitions count once received, dated by request_date
- transfers count once completed, dated by completed_at
- expenditures count always, dated by expenditure_date
- assignments count in any status, dated by assigned_date
- active_assignments ignores the window (stock currently issued)

"opening_balance" is the live on-hand total at query time, not a
reconstructed historical balance.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date
from decimal import Decimal
from typing import Iterable

from flask import current_app
from sqlalchemy import or_

from ..models import Acquisition, AssetType, Assignment, Expenditure, Site, Transfer
from ..money import ZERO_COST, cost_str, to_cost
from ..time_utils import to_utc_z
from ..validation import DateWindow, ValidationError, optional_int, parse_window
from . import access_guard
from .access_guard import Actor
from .ledger_service import LedgerStore
from .lifecycle_service import ACQUISITION_RECEIVED, ASSIGNMENT_ACTIVE, TRANSFER_COMPLETED
from .reference_service import validate_category


KIND_ACQUISITION = "acquisition"
KIND_TRANSFER = "transfer"
KIND_ASSIGNMENT = "assignment"
KIND_EXPENDITURE = "expenditure"


@dataclass(frozen=True)
class Movement:
    """One transaction as seen by the aggregation engine."""
    kind: str
    asset_type_id: int
    quantity: int
    status: str
    occurred_on: date | None
    site_id: int | None = None
    from_site_id: int | None = None
    to_site_id: int | None = None
    total_cost: Decimal | None = None


@dataclass
class Metrics:
    opening_balance: int = 0
    purchases: int = 0
    transfers_in: int = 0
    transfers_out: int = 0
    expenditures: int = 0
    assignments: int = 0
    active_assignments: int = 0
    purchase_cost: Decimal = ZERO_COST
    expenditure_cost: Decimal = ZERO_COST
    window: DateWindow = field(default_factory=DateWindow)

    @property
    def net_movement(self) -> int:
        return self.purchases + self.transfers_in - self.transfers_out

    @property
    def closing_balance(self) -> int:
        return self.opening_balance + self.net_movement - self.expenditures - self.active_assignments

    def to_dict(self) -> dict:
        data = asdict(self)
        data["window"] = self.window.to_dict()
        data["net_movement"] = self.net_movement
        data["closing_balance"] = self.closing_balance
        data["purchase_cost"] = cost_str(self.purchase_cost)
        data["expenditure_cost"] = cost_str(self.expenditure_cost)
        return data


def summarize(
    entries: Iterable,
    history: Iterable[Movement],
    window: DateWindow,
    *,
    site_ids: list[int] | None = None,
) -> Metrics:
    """
    Fold a ledger snapshot and transaction history into Metrics.

    `entries` are objects with a `quantity` attribute (LedgerEntry rows).
    `site_ids` is the scope the history was drawn from; None means all sites,
    in which case a transfer between two sites counts as both in and out.
    No storage access.
    """
    def in_scope(site_id) -> bool:
        return site_ids is None or site_id in site_ids

    metrics = Metrics(window=window)
    metrics.opening_balance = sum(int(e.quantity) for e in entries)

    for move in history:
        if move.kind == KIND_ASSIGNMENT and move.status == ASSIGNMENT_ACTIVE:
            metrics.active_assignments += move.quantity

        if not window.contains(move.occurred_on):
            continue

        if move.kind == KIND_ACQUISITION:
            if move.status != ACQUISITION_RECEIVED:
                continue
            metrics.purchases += move.quantity
            metrics.purchase_cost += move.total_cost or ZERO_COST
        elif move.kind == KIND_TRANSFER:
            if move.status != TRANSFER_COMPLETED:
                continue
            if in_scope(move.to_site_id):
                metrics.transfers_in += move.quantity
            if in_scope(move.from_site_id):
                metrics.transfers_out += move.quantity
        elif move.kind == KIND_EXPENDITURE:
            metrics.expenditures += move.quantity
            metrics.expenditure_cost += move.total_cost or ZERO_COST
        elif move.kind == KIND_ASSIGNMENT:
            metrics.assignments += move.quantity

    metrics.purchase_cost = to_cost(metrics.purchase_cost)
    metrics.expenditure_cost = to_cost(metrics.expenditure_cost)
    return metrics


def load_history(session, site_ids: list[int] | None, category: str | None) -> list[Movement]:
    """Movement records for every transaction kind in scope."""
    def scoped(q, model, *site_columns):
        if category:
            q = q.join(AssetType, AssetType.id == model.asset_type_id).filter(AssetType.category == category)
        if site_ids is not None:
            q = q.filter(or_(*[col.in_(site_ids) for col in site_columns]))
        return q

    history: list[Movement] = []

    acquisitions = scoped(
        session.query(Acquisition).filter(Acquisition.status == ACQUISITION_RECEIVED),
        Acquisition,
        Acquisition.site_id,
    )
    for a in acquisitions:
        history.append(Movement(
            kind=KIND_ACQUISITION,
            asset_type_id=a.asset_type_id,
            quantity=a.quantity,
            status=a.status,
            occurred_on=a.request_date,
            site_id=a.site_id,
            total_cost=a.total_cost,
        ))

    transfers = scoped(
        session.query(Transfer).filter(Transfer.status == TRANSFER_COMPLETED),
        Transfer,
        Transfer.from_site_id,
        Transfer.to_site_id,
    )
    for t in transfers:
        history.append(Movement(
            kind=KIND_TRANSFER,
            asset_type_id=t.asset_type_id,
            quantity=t.quantity,
            status=t.status,
            occurred_on=t.completed_at.date() if t.completed_at else None,
            from_site_id=t.from_site_id,
            to_site_id=t.to_site_id,
        ))

    for e in scoped(session.query(Expenditure), Expenditure, Expenditure.site_id):
        history.append(Movement(
            kind=KIND_EXPENDITURE,
            asset_type_id=e.asset_type_id,
            quantity=e.quantity,
            status=e.status,
            occurred_on=e.expenditure_date,
            site_id=e.site_id,
            total_cost=e.total_cost,
        ))

    for s in scoped(session.query(Assignment), Assignment, Assignment.site_id):
        history.append(Movement(
            kind=KIND_ASSIGNMENT,
            asset_type_id=s.asset_type_id,
            quantity=s.quantity,
            status=s.status,
            occurred_on=s.assigned_date,
            site_id=s.site_id,
        ))

    return history


def compute_metrics(
    store: LedgerStore,
    actor: Actor,
    site_id=None,
    start=None,
    end=None,
    category=None,
) -> dict:
    """Dashboard metrics for the actor's scope (one site, or all sites for an admin)."""
    window = parse_window(start, end)
    category = validate_category(category)
    site_id = optional_int(site_id, "site_id")
    scope = access_guard.resolve_scope(actor, "VIEW_METRICS", site_id)

    entries = store.snapshot(site_ids=scope, category=category)
    history = load_history(store.session, scope, category)
    metrics = summarize(entries, history, window, site_ids=scope)

    return {
        "scope": {"site_ids": scope, "category": category},
        "metrics": metrics.to_dict(),
    }


def _describe(record, kind: str) -> str:
    name = record.asset_type.name if record.asset_type else f"asset type {record.asset_type_id}"
    if kind == KIND_ACQUISITION:
        return f"Purchased {record.quantity} {name} from {record.supplier}"
    if kind == KIND_TRANSFER:
        return f"Transferred {record.quantity} {name} from {record.from_site.name} to {record.to_site.name}"
    if kind == KIND_ASSIGNMENT:
        person = record.personnel
        who = f"{person.rank + ' ' if person.rank else ''}{person.last_name}"
        return f"Assigned {record.quantity} {name} to {who}"
    return f"Expended {record.quantity} {name} for {record.purpose}"


def _activity_row(record, kind: str) -> dict:
    row = {
        "kind": kind,
        "id": record.id,
        "asset_type_id": record.asset_type_id,
        "status": record.status,
        "quantity": record.quantity,
        "created_at": to_utc_z(record.created_at),
        "description": _describe(record, kind),
    }
    if kind == KIND_TRANSFER:
        row["from_site_id"] = record.from_site_id
        row["to_site_id"] = record.to_site_id
    else:
        row["site_id"] = record.site_id
    return row


def recent_activity(store: LedgerStore, actor: Actor, limit=None, site_id=None) -> list[dict]:
    """Most recent transactions of every kind, newest first, merged across kinds."""
    max_limit = current_app.config.get("MAX_PAGE_SIZE", 100)
    limit = optional_int(limit, "limit")
    if limit is None:
        limit = current_app.config.get("RECENT_ACTIVITY_LIMIT", 10)
    if limit < 1 or limit > max_limit:
        raise ValidationError(f"limit must be between 1 and {max_limit}")

    scope = access_guard.resolve_scope(actor, "VIEW_TRANSACTIONS", optional_int(site_id, "site_id"))
    session = store.session

    sources = [
        (KIND_ACQUISITION, Acquisition, [Acquisition.site_id]),
        (KIND_TRANSFER, Transfer, [Transfer.from_site_id, Transfer.to_site_id]),
        (KIND_ASSIGNMENT, Assignment, [Assignment.site_id]),
        (KIND_EXPENDITURE, Expenditure, [Expenditure.site_id]),
    ]

    merged = []
    for kind, model, site_columns in sources:
        q = session.query(model)
        if scope is not None:
            q = q.filter(or_(*[col.in_(scope) for col in site_columns]))
        for record in q.order_by(model.created_at.desc(), model.id.desc()).limit(limit):
            merged.append((record.created_at, record.id, kind, record))

    merged.sort(key=lambda item: (item[0], item[1]), reverse=True)
    return [_activity_row(record, kind) for _, _, kind, record in merged[:limit]]


def inventory_overview(
    store: LedgerStore,
    actor: Actor,
    site_id=None,
    asset_type_id=None,
    category=None,
) -> list[dict]:
    """Ledger snapshot rows with asset type and site names, plus stock value."""
    category = validate_category(category)
    asset_type_id = optional_int(asset_type_id, "asset_type_id")
    scope = access_guard.resolve_scope(actor, "VIEW_INVENTORY", optional_int(site_id, "site_id"))

    entries = store.snapshot(asset_type_id=asset_type_id, site_ids=scope, category=category)
    if not entries:
        return []

    asset_types = {
        a.id: a
        for a in store.session.query(AssetType).filter(AssetType.id.in_({e.asset_type_id for e in entries}))
    }
    sites = {s.id: s for s in store.session.query(Site).filter(Site.id.in_({e.site_id for e in entries}))}

    rows = []
    for entry in entries:
        asset_type = asset_types.get(entry.asset_type_id)
        site = sites.get(entry.site_id)
        row = entry.to_dict()
        row.update({
            "asset_type_name": asset_type.name if asset_type else None,
            "category": asset_type.category if asset_type else None,
            "unit": asset_type.unit if asset_type else None,
            "site_name": site.name if site else None,
            "site_code": site.code if site else None,
            "total_value": cost_str(to_cost(entry.average_unit_cost or 0) * int(entry.quantity)),
        })
        rows.append(row)
    return rows
