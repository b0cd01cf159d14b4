# Overview: Ledger store; per-(asset type, site) quantity and weighted-average cost.

from __future__ import annotations

from contextlib import contextmanager
from decimal import Decimal, ROUND_HALF_UP

from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db
from ..models import AssetType, LedgerEntry
from ..money import COST_QUANT, ZERO_COST, to_cost
from .concurrency import KeyLockRegistry
from .errors import ContentionError, InsufficientStock, LedgerError, StorageFault
from armory.time_utils import utcnow
"""
Armory Ledger Invariants (authoritative)

- One row per (asset_type_id, site_id); created on first replenishment, never deleted.
- quantity >= 0 at all times. reserve_and_decrement is a single conditional
  UPDATE (... WHERE quantity >= requested), so the check and the mutation are
  one statement; the per-key lock in unit_of_work serializes writers in-process
  and the conditional UPDATE keeps it correct across processes.
- average_unit_cost is recomputed on every replenishment:
    new_avg = (old_qty * old_avg + qty * unit_cost) / (old_qty + qty)
  quantized to 4 places (half-up). When old_qty + qty == 0 the previous
  average is kept. Decrements never change the average.
- The store never commits on its own; unit_of_work owns the transaction so a
  ledger change and the workflow status change commit or roll back together.
"""


LedgerKey = tuple[int, int]


def weighted_average_cost(old_qty: int, old_avg: Decimal, qty: int, unit_cost: Decimal) -> Decimal:
    """Quantity-weighted blend of the existing cost basis and an incoming lot."""
    total_qty = old_qty + qty
    if total_qty == 0:
        return to_cost(old_avg)
    blended = (Decimal(old_qty) * Decimal(old_avg) + Decimal(qty) * Decimal(unit_cost)) / Decimal(total_qty)
    return blended.quantize(COST_QUANT, rounding=ROUND_HALF_UP)


class LedgerStore:
    """
    Ledger Store bound to one SQLAlchemy session and a shared key-lock registry.

    Build one per request with get_ledger_store() and pass it to workflow
    operations; nothing in the workflows reaches for ledger state any other way.
    """

    def __init__(self, session=None, locks: KeyLockRegistry | None = None, *, logger=None):
        self.session = session if session is not None else db.session
        self.locks = locks if locks is not None else KeyLockRegistry()
        self.logger = logger

    # ------------------------------------------------------------------
    # Transaction boundary
    # ------------------------------------------------------------------

    @contextmanager
    def unit_of_work(self, *keys: LedgerKey):
        """
        All-or-nothing block around ledger mutations and record changes.

        Holds the per-key locks for `keys` (sorted, bounded wait), commits when
        the block exits cleanly, rolls back on any exception. Database-level
        lock/stale errors become ContentionError; anything else from SQLAlchemy
        becomes StorageFault. Domain errors propagate unchanged.
        """
        with self.locks.hold(keys):
            try:
                yield self
                self.session.commit()
            except LedgerError:
                self.session.rollback()
                raise
            except (OperationalError, StaleDataError) as exc:
                self.session.rollback()
                raise ContentionError(f"Ledger update contended: {exc}") from exc
            except SQLAlchemyError as exc:
                self.session.rollback()
                raise StorageFault(f"Ledger storage failure: {exc}") from exc
            except BaseException:
                self.session.rollback()
                raise

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_entry(self, asset_type_id: int, site_id: int) -> LedgerEntry | None:
        return (
            self.session.query(LedgerEntry)
            .filter_by(asset_type_id=asset_type_id, site_id=site_id)
            .populate_existing()
            .first()
        )

    def quantity_on_hand(self, asset_type_id: int, site_id: int) -> int:
        entry = self.get_entry(asset_type_id, site_id)
        return int(entry.quantity) if entry else 0

    def average_cost(self, asset_type_id: int, site_id: int) -> Decimal:
        entry = self.get_entry(asset_type_id, site_id)
        return to_cost(entry.average_unit_cost) if entry else ZERO_COST

    def snapshot(
        self,
        asset_type_id: int | None = None,
        site_id: int | None = None,
        *,
        site_ids: list[int] | None = None,
        category: str | None = None,
    ) -> list[LedgerEntry]:
        """Point-in-time view of ledger rows, filtered by the optional keys."""
        q = self.session.query(LedgerEntry)
        if asset_type_id is not None:
            q = q.filter(LedgerEntry.asset_type_id == asset_type_id)
        if site_id is not None:
            q = q.filter(LedgerEntry.site_id == site_id)
        if site_ids is not None:
            q = q.filter(LedgerEntry.site_id.in_(site_ids))
        if category is not None:
            q = q.join(AssetType, AssetType.id == LedgerEntry.asset_type_id).filter(AssetType.category == category)
        return q.order_by(LedgerEntry.asset_type_id.asc(), LedgerEntry.site_id.asc()).all()

    # ------------------------------------------------------------------
    # Mutations (call inside unit_of_work)
    # ------------------------------------------------------------------

    def reserve_and_decrement(self, asset_type_id: int, site_id: int, quantity: int) -> LedgerEntry:
        """
        Atomically take `quantity` out of the row, or raise InsufficientStock.

        The availability check is the WHERE clause of the UPDATE itself: if no
        row matched, nothing changed and the current on-hand count is reported.
        """
        if quantity <= 0:
            raise ValueError("quantity must be positive")

        stmt = (
            update(LedgerEntry)
            .where(
                LedgerEntry.asset_type_id == asset_type_id,
                LedgerEntry.site_id == site_id,
                LedgerEntry.quantity >= quantity,
            )
            .values(quantity=LedgerEntry.quantity - quantity, last_updated=utcnow())
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(stmt)
        if not result.rowcount:
            raise InsufficientStock(
                asset_type_id=asset_type_id,
                site_id=site_id,
                available=self.quantity_on_hand(asset_type_id, site_id),
                requested=quantity,
            )

        entry = self.get_entry(asset_type_id, site_id)
        self._log("decrement", asset_type_id, site_id, -quantity, entry)
        return entry

    def replenish(self, asset_type_id: int, site_id: int, quantity: int, unit_cost) -> LedgerEntry:
        """
        Add `quantity` at `unit_cost`, recomputing the weighted average cost.

        Creates the row (seeded at zero) when the key has never been stocked.
        """
        if quantity <= 0:
            raise ValueError("quantity must be positive")
        cost = to_cost(unit_cost)
        if cost < 0:
            raise ValueError("unit_cost must be non-negative")

        entry = self._get_or_create(asset_type_id, site_id)
        old_qty = int(entry.quantity or 0)
        old_avg = to_cost(entry.average_unit_cost or 0)

        new_avg = weighted_average_cost(old_qty, old_avg, quantity, cost)

        stmt = (
            update(LedgerEntry)
            .where(LedgerEntry.id == entry.id, LedgerEntry.quantity == old_qty)
            .values(
                quantity=LedgerEntry.quantity + quantity,
                average_unit_cost=new_avg,
                last_updated=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(stmt)
        if not result.rowcount:
            # Another writer changed the row between our read and the update
            raise ContentionError(
                f"Ledger row for asset type {asset_type_id} at site {site_id} changed during replenish"
            )

        entry = self.get_entry(asset_type_id, site_id)
        self._log("replenish", asset_type_id, site_id, quantity, entry)
        return entry

    def _get_or_create(self, asset_type_id: int, site_id: int) -> LedgerEntry:
        entry = self.get_entry(asset_type_id, site_id)
        if entry is not None:
            return entry

        entry = LedgerEntry(
            asset_type_id=asset_type_id,
            site_id=site_id,
            quantity=0,
            average_unit_cost=ZERO_COST,
            last_updated=utcnow(),
        )
        self.session.add(entry)
        try:
            self.session.flush()
        except IntegrityError as exc:
            # Another process created the row first; the whole operation can be retried
            raise ContentionError(
                f"Ledger row for asset type {asset_type_id} at site {site_id} created concurrently"
            ) from exc
        return entry

    def _log(self, action: str, asset_type_id: int, site_id: int, delta: int, entry: LedgerEntry | None) -> None:
        if self.logger is None:
            return
        self.logger.info(
            "ledger %s asset_type=%s site=%s delta=%+d on_hand=%s",
            action,
            asset_type_id,
            site_id,
            delta,
            entry.quantity if entry else None,
        )


def get_ledger_store() -> LedgerStore:
    """Ledger store for the current app context (request, CLI command or test)."""
    app = current_app._get_current_object()
    locks = app.extensions.get("ledger_locks")
    if locks is None:
        locks = KeyLockRegistry(timeout=app.config.get("LEDGER_LOCK_TIMEOUT_SECONDS", 5.0))
        app.extensions["ledger_locks"] = locks
    return LedgerStore(db.session, locks, logger=app.logger)
