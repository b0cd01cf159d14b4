from __future__ import annotations

from ..extensions import db
from armory.money import cost_str
from armory.time_utils import to_iso_date, to_utc_z, utcnow


class Acquisition(db.Model):
    """
    Purchase of stock for one site.

    LIFECYCLE (see services/lifecycle_service.py):
        pending -> approved -> received
        pending|approved -> cancelled

    Receiving replenishes the site's ledger row at unit_cost.
    """
    __tablename__ = "acquisitions"
    __table_args__ = (
        db.Index("ix_acquisitions_site_status", "site_id", "status"),
        db.Index("ix_acquisitions_request_date", "request_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    asset_type_id = db.Column(db.Integer, db.ForeignKey("asset_types.id"), nullable=False, index=True)
    site_id = db.Column(db.Integer, db.ForeignKey("sites.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    unit_cost = db.Column(db.Numeric(14, 4), nullable=False)
    total_cost = db.Column(db.Numeric(16, 4), nullable=False)

    supplier = db.Column(db.String(255), nullable=False)
    purchase_order_number = db.Column(db.String(64), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    request_date = db.Column(db.Date, nullable=False)
    status = db.Column(db.String(16), nullable=False, default="pending", index=True)

    requested_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    approved_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    approved_at = db.Column(db.DateTime(timezone=True), nullable=True)
    received_date = db.Column(db.Date, nullable=True)
    cancelled_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    cancelled_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    asset_type = db.relationship("AssetType")
    site = db.relationship("Site")

    def __repr__(self) -> str:
        return f"<Acquisition id={self.id} status={self.status} qty={self.quantity}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "asset_type_id": self.asset_type_id,
            "site_id": self.site_id,
            "quantity": self.quantity,
            "unit_cost": cost_str(self.unit_cost),
            "total_cost": cost_str(self.total_cost),
            "supplier": self.supplier,
            "purchase_order_number": self.purchase_order_number,
            "notes": self.notes,
            "request_date": to_iso_date(self.request_date),
            "status": self.status,
            "requested_by": self.requested_by,
            "approved_by": self.approved_by,
            "approved_at": to_utc_z(self.approved_at),
            "received_date": to_iso_date(self.received_date),
            "cancelled_by": self.cancelled_by,
            "cancelled_at": to_utc_z(self.cancelled_at),
            "created_at": to_utc_z(self.created_at),
        }


class Transfer(db.Model):
    """
    Movement of stock from one site to another.

    LIFECYCLE:
        pending -> approved -> completed
        pending|approved -> rejected

    Approval belongs to the source site, completion to the destination site.
    Stock moves only at completion (decrement source, replenish destination at
    the source's average cost), never at creation or approval.
    """
    __tablename__ = "transfers"
    __table_args__ = (
        db.UniqueConstraint("tracking_code", name="uq_transfers_tracking_code"),
        db.CheckConstraint("from_site_id <> to_site_id", name="ck_transfers_distinct_sites"),
        db.Index("ix_transfers_from_status", "from_site_id", "status"),
        db.Index("ix_transfers_to_status", "to_site_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    asset_type_id = db.Column(db.Integer, db.ForeignKey("asset_types.id"), nullable=False, index=True)
    from_site_id = db.Column(db.Integer, db.ForeignKey("sites.id"), nullable=False)
    to_site_id = db.Column(db.Integer, db.ForeignKey("sites.id"), nullable=False)

    quantity = db.Column(db.Integer, nullable=False)
    # Source average cost captured at completion
    unit_cost = db.Column(db.Numeric(14, 4), nullable=True)

    status = db.Column(db.String(16), nullable=False, default="pending", index=True)
    tracking_code = db.Column(db.String(32), nullable=False)
    transfer_date = db.Column(db.Date, nullable=False)
    reason = db.Column(db.Text, nullable=True)
    notes = db.Column(db.Text, nullable=True)

    initiated_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    approved_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    approved_at = db.Column(db.DateTime(timezone=True), nullable=True)
    received_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    completed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    rejected_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    rejected_at = db.Column(db.DateTime(timezone=True), nullable=True)
    rejection_reason = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    asset_type = db.relationship("AssetType")
    from_site = db.relationship("Site", foreign_keys=[from_site_id])
    to_site = db.relationship("Site", foreign_keys=[to_site_id])

    def __repr__(self) -> str:
        return f"<Transfer id={self.id} {self.from_site_id}->{self.to_site_id} status={self.status}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "asset_type_id": self.asset_type_id,
            "from_site_id": self.from_site_id,
            "to_site_id": self.to_site_id,
            "quantity": self.quantity,
            "unit_cost": cost_str(self.unit_cost),
            "status": self.status,
            "tracking_code": self.tracking_code,
            "transfer_date": to_iso_date(self.transfer_date),
            "reason": self.reason,
            "notes": self.notes,
            "initiated_by": self.initiated_by,
            "approved_by": self.approved_by,
            "approved_at": to_utc_z(self.approved_at),
            "received_by": self.received_by,
            "completed_at": to_utc_z(self.completed_at),
            "rejected_by": self.rejected_by,
            "rejected_at": to_utc_z(self.rejected_at),
            "rejection_reason": self.rejection_reason,
            "created_at": to_utc_z(self.created_at),
        }


class Assignment(db.Model):
    """
    Stock issued to a service member.

    LIFECYCLE: active -> returned (one-way)

    Creation decrements the site's ledger row; return replenishes it at the
    site's current average cost so the cost basis is untouched.
    """
    __tablename__ = "assignments"
    __table_args__ = (
        db.Index("ix_assignments_site_status", "site_id", "status"),
        db.Index("ix_assignments_personnel", "personnel_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    asset_type_id = db.Column(db.Integer, db.ForeignKey("asset_types.id"), nullable=False, index=True)
    personnel_id = db.Column(db.Integer, db.ForeignKey("personnel.id"), nullable=False)
    site_id = db.Column(db.Integer, db.ForeignKey("sites.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(16), nullable=False, default="active", index=True)

    purpose = db.Column(db.Text, nullable=True)
    serial_numbers = db.Column(db.Text, nullable=True)
    notes = db.Column(db.Text, nullable=True)

    assigned_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    assigned_date = db.Column(db.Date, nullable=False)
    return_date = db.Column(db.Date, nullable=True)
    returned_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    asset_type = db.relationship("AssetType")
    personnel = db.relationship("Personnel")
    site = db.relationship("Site")

    def __repr__(self) -> str:
        return f"<Assignment id={self.id} personnel_id={self.personnel_id} status={self.status}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "asset_type_id": self.asset_type_id,
            "personnel_id": self.personnel_id,
            "site_id": self.site_id,
            "quantity": self.quantity,
            "status": self.status,
            "purpose": self.purpose,
            "serial_numbers": self.serial_numbers,
            "notes": self.notes,
            "assigned_by": self.assigned_by,
            "assigned_date": to_iso_date(self.assigned_date),
            "return_date": to_iso_date(self.return_date),
            "returned_by": self.returned_by,
            "created_at": to_utc_z(self.created_at),
        }


class Expenditure(db.Model):
    """
    Irreversible consumption of stock (training, operations, loss).

    Single step: the record exists only if the ledger decrement succeeded.
    """
    __tablename__ = "expenditures"
    __table_args__ = (
        db.Index("ix_expenditures_site_date", "site_id", "expenditure_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    asset_type_id = db.Column(db.Integer, db.ForeignKey("asset_types.id"), nullable=False, index=True)
    site_id = db.Column(db.Integer, db.ForeignKey("sites.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    unit_cost = db.Column(db.Numeric(14, 4), nullable=False)
    total_cost = db.Column(db.Numeric(16, 4), nullable=False)

    purpose = db.Column(db.Text, nullable=False)
    operation_name = db.Column(db.String(255), nullable=True)
    justification = db.Column(db.Text, nullable=True)

    authorized_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    recorded_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    expenditure_date = db.Column(db.Date, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    asset_type = db.relationship("AssetType")
    site = db.relationship("Site")

    # Expenditures have no lifecycle; the record itself is the terminal state
    status = "recorded"

    def __repr__(self) -> str:
        return f"<Expenditure id={self.id} site_id={self.site_id} qty={self.quantity}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "asset_type_id": self.asset_type_id,
            "site_id": self.site_id,
            "quantity": self.quantity,
            "unit_cost": cost_str(self.unit_cost),
            "total_cost": cost_str(self.total_cost),
            "purpose": self.purpose,
            "operation_name": self.operation_name,
            "justification": self.justification,
            "authorized_by": self.authorized_by,
            "recorded_by": self.recorded_by,
            "expenditure_date": to_iso_date(self.expenditure_date),
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
        }
