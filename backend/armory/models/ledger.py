from __future__ import annotations

from ..extensions import db
from armory.money import cost_str
from armory.time_utils import to_utc_z, utcnow


class LedgerEntry(db.Model):
    """
    Current quantity and cost basis for one asset type at one site.

    Owned by LedgerStore (services/ledger_service.py); workflows never write
    these columns directly.

    INVARIANTS:
    - quantity >= 0 at all times (CHECK constraint plus conditional UPDATE)
    - created on first replenishment, never deleted (may sit at zero)
    - average_unit_cost is the quantity-weighted blend of every replenishment
    """
    __tablename__ = "ledger_entries"
    __table_args__ = (
        db.UniqueConstraint("asset_type_id", "site_id", name="uq_ledger_asset_site"),
        db.CheckConstraint("quantity >= 0", name="ck_ledger_quantity_non_negative"),
        db.CheckConstraint("average_unit_cost >= 0", name="ck_ledger_cost_non_negative"),
        db.Index("ix_ledger_site", "site_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    asset_type_id = db.Column(db.Integer, db.ForeignKey("asset_types.id"), nullable=False, index=True)
    site_id = db.Column(db.Integer, db.ForeignKey("sites.id"), nullable=False)

    quantity = db.Column(db.Integer, nullable=False, default=0)
    average_unit_cost = db.Column(db.Numeric(14, 4), nullable=False, default=0)

    last_updated = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    asset_type = db.relationship("AssetType")
    site = db.relationship("Site")

    @property
    def key(self) -> tuple[int, int]:
        return (self.asset_type_id, self.site_id)

    def __repr__(self) -> str:
        return (
            f"<LedgerEntry asset_type_id={self.asset_type_id} site_id={self.site_id} "
            f"quantity={self.quantity} avg={self.average_unit_cost}>"
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "asset_type_id": self.asset_type_id,
            "site_id": self.site_id,
            "quantity": self.quantity,
            "average_unit_cost": cost_str(self.average_unit_cost),
            "last_updated": to_utc_z(self.last_updated),
        }
