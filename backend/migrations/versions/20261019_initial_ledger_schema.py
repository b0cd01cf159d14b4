"""Initial ledger schema

Revision ID: 20261019_initial_ledger
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_initial_ledger"
down_revision = None
branch_labels = None
depends_on = None


def _created_at(server_default=True):
    if server_default:
        return sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now())
    return sa.Column("created_at", sa.DateTime(timezone=True), nullable=False)


def upgrade():
    op.create_table(
        "sites",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("code", sa.String(length=32), nullable=False),
        sa.Column("location", sa.String(length=255), nullable=True),
        sa.Column("commander_id", sa.Integer(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        _created_at(),
        sa.UniqueConstraint("code", name="uq_sites_code"),
    )

    op.create_table(
        "asset_types",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("category", sa.String(length=32), nullable=False),
        sa.Column("unit", sa.String(length=32), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        _created_at(),
        sa.UniqueConstraint("name", name="uq_asset_types_name"),
    )
    op.create_index("ix_asset_types_category", "asset_types", ["category"])

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("username", sa.String(length=64), nullable=False),
        sa.Column("first_name", sa.String(length=64), nullable=True),
        sa.Column("last_name", sa.String(length=64), nullable=True),
        sa.Column("role", sa.String(length=32), nullable=False),
        sa.Column("site_id", sa.Integer(), sa.ForeignKey("sites.id"), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        _created_at(),
        sa.UniqueConstraint("username", name="uq_users_username"),
    )
    op.create_index("ix_users_site_id", "users", ["site_id"])

    op.create_table(
        "personnel",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("service_number", sa.String(length=32), nullable=False),
        sa.Column("first_name", sa.String(length=64), nullable=False),
        sa.Column("last_name", sa.String(length=64), nullable=False),
        sa.Column("rank", sa.String(length=32), nullable=True),
        sa.Column("unit", sa.String(length=64), nullable=True),
        sa.Column("site_id", sa.Integer(), sa.ForeignKey("sites.id"), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        _created_at(),
        sa.UniqueConstraint("service_number", name="uq_personnel_service_number"),
    )
    op.create_index("ix_personnel_site_id", "personnel", ["site_id"])
    op.create_index("ix_personnel_site_rank", "personnel", ["site_id", "rank"])

    op.create_table(
        "ledger_entries",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("asset_type_id", sa.Integer(), sa.ForeignKey("asset_types.id"), nullable=False),
        sa.Column("site_id", sa.Integer(), sa.ForeignKey("sites.id"), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("average_unit_cost", sa.Numeric(14, 4), nullable=False),
        sa.Column("last_updated", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("asset_type_id", "site_id", name="uq_ledger_asset_site"),
        sa.CheckConstraint("quantity >= 0", name="ck_ledger_quantity_non_negative"),
        sa.CheckConstraint("average_unit_cost >= 0", name="ck_ledger_cost_non_negative"),
    )
    op.create_index("ix_ledger_site", "ledger_entries", ["site_id"])
    op.create_index("ix_ledger_entries_asset_type_id", "ledger_entries", ["asset_type_id"])

    op.create_table(
        "acquisitions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("asset_type_id", sa.Integer(), sa.ForeignKey("asset_types.id"), nullable=False),
        sa.Column("site_id", sa.Integer(), sa.ForeignKey("sites.id"), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("unit_cost", sa.Numeric(14, 4), nullable=False),
        sa.Column("total_cost", sa.Numeric(16, 4), nullable=False),
        sa.Column("supplier", sa.String(length=255), nullable=False),
        sa.Column("purchase_order_number", sa.String(length=64), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("request_date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("requested_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("approved_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("received_date", sa.Date(), nullable=True),
        sa.Column("cancelled_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        _created_at(server_default=False),
    )
    op.create_index("ix_acquisitions_asset_type_id", "acquisitions", ["asset_type_id"])
    op.create_index("ix_acquisitions_site_id", "acquisitions", ["site_id"])
    op.create_index("ix_acquisitions_status", "acquisitions", ["status"])
    op.create_index("ix_acquisitions_site_status", "acquisitions", ["site_id", "status"])
    op.create_index("ix_acquisitions_request_date", "acquisitions", ["request_date"])
    op.create_index("ix_acquisitions_created_at", "acquisitions", ["created_at"])

    op.create_table(
        "transfers",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("asset_type_id", sa.Integer(), sa.ForeignKey("asset_types.id"), nullable=False),
        sa.Column("from_site_id", sa.Integer(), sa.ForeignKey("sites.id"), nullable=False),
        sa.Column("to_site_id", sa.Integer(), sa.ForeignKey("sites.id"), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("unit_cost", sa.Numeric(14, 4), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("tracking_code", sa.String(length=32), nullable=False),
        sa.Column("transfer_date", sa.Date(), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("initiated_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("approved_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("received_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejected_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("rejected_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        _created_at(server_default=False),
        sa.UniqueConstraint("tracking_code", name="uq_transfers_tracking_code"),
        sa.CheckConstraint("from_site_id <> to_site_id", name="ck_transfers_distinct_sites"),
    )
    op.create_index("ix_transfers_asset_type_id", "transfers", ["asset_type_id"])
    op.create_index("ix_transfers_status", "transfers", ["status"])
    op.create_index("ix_transfers_from_status", "transfers", ["from_site_id", "status"])
    op.create_index("ix_transfers_to_status", "transfers", ["to_site_id", "status"])
    op.create_index("ix_transfers_created_at", "transfers", ["created_at"])

    op.create_table(
        "assignments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("asset_type_id", sa.Integer(), sa.ForeignKey("asset_types.id"), nullable=False),
        sa.Column("personnel_id", sa.Integer(), sa.ForeignKey("personnel.id"), nullable=False),
        sa.Column("site_id", sa.Integer(), sa.ForeignKey("sites.id"), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("purpose", sa.Text(), nullable=True),
        sa.Column("serial_numbers", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("assigned_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("assigned_date", sa.Date(), nullable=False),
        sa.Column("return_date", sa.Date(), nullable=True),
        sa.Column("returned_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        _created_at(server_default=False),
    )
    op.create_index("ix_assignments_asset_type_id", "assignments", ["asset_type_id"])
    op.create_index("ix_assignments_site_id", "assignments", ["site_id"])
    op.create_index("ix_assignments_status", "assignments", ["status"])
    op.create_index("ix_assignments_site_status", "assignments", ["site_id", "status"])
    op.create_index("ix_assignments_personnel", "assignments", ["personnel_id"])
    op.create_index("ix_assignments_created_at", "assignments", ["created_at"])

    op.create_table(
        "expenditures",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("asset_type_id", sa.Integer(), sa.ForeignKey("asset_types.id"), nullable=False),
        sa.Column("site_id", sa.Integer(), sa.ForeignKey("sites.id"), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("unit_cost", sa.Numeric(14, 4), nullable=False),
        sa.Column("total_cost", sa.Numeric(16, 4), nullable=False),
        sa.Column("purpose", sa.Text(), nullable=False),
        sa.Column("operation_name", sa.String(length=255), nullable=True),
        sa.Column("justification", sa.Text(), nullable=True),
        sa.Column("authorized_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("recorded_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("expenditure_date", sa.Date(), nullable=False),
        _created_at(server_default=False),
    )
    op.create_index("ix_expenditures_asset_type_id", "expenditures", ["asset_type_id"])
    op.create_index("ix_expenditures_site_id", "expenditures", ["site_id"])
    op.create_index("ix_expenditures_site_date", "expenditures", ["site_id", "expenditure_date"])
    op.create_index("ix_expenditures_created_at", "expenditures", ["created_at"])


def downgrade():
    for table in (
        "expenditures",
        "assignments",
        "transfers",
        "acquisitions",
        "ledger_entries",
        "personnel",
        "users",
        "asset_types",
        "sites",
    ):
        op.drop_table(table)
