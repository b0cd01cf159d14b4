"""
Aggregation engine tests.

Verifies:
- summarize() arithmetic over plain Movement records (no database)
- closing = opening + net_movement - expenditures - active_assignments
- Transfers between two in-scope sites count as both in and out
- Loaders respect site scope and are idempotent
"""

from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest

from armory.services import (
    acquisition_service,
    assignment_service,
    expenditure_service,
    reporting_service,
    transfer_service,
)
from armory.services.errors import AuthorizationError
from armory.services.reporting_service import (
    KIND_ACQUISITION,
    KIND_ASSIGNMENT,
    KIND_EXPENDITURE,
    KIND_TRANSFER,
    Movement,
    summarize,
)
from armory.validation import DateWindow, ValidationError


def _entries(*quantities):
    return [SimpleNamespace(quantity=q) for q in quantities]


# =============================================================================
# SUMMARIZE (pure)
# =============================================================================


class TestSummarize:

    def test_empty(self):
        metrics = summarize([], [], DateWindow())
        assert metrics.opening_balance == 0
        assert metrics.net_movement == 0
        assert metrics.closing_balance == 0

    def test_counts_by_kind_and_status(self):
        history = [
            Movement(KIND_ACQUISITION, 1, 50, "received", date(2024, 3, 1), site_id=1, total_cost=Decimal("5000")),
            Movement(KIND_ACQUISITION, 1, 99, "approved", date(2024, 3, 1), site_id=1),
            Movement(KIND_EXPENDITURE, 1, 5, "recorded", date(2024, 3, 2), site_id=1, total_cost=Decimal("500")),
            Movement(KIND_ASSIGNMENT, 1, 7, "active", date(2024, 3, 3), site_id=1),
            Movement(KIND_ASSIGNMENT, 1, 3, "returned", date(2024, 3, 3), site_id=1),
        ]
        metrics = summarize(_entries(38), history, DateWindow(), site_ids=[1])

        assert metrics.purchases == 50
        assert metrics.purchase_cost == Decimal("5000")
        assert metrics.expenditures == 5
        assert metrics.expenditure_cost == Decimal("500")
        assert metrics.assignments == 10
        assert metrics.active_assignments == 7
        assert metrics.net_movement == 50
        assert metrics.closing_balance == 38 + 50 - 5 - 7

    def test_window_is_inclusive_on_both_ends(self):
        history = [
            Movement(KIND_EXPENDITURE, 1, 1, "recorded", date(2024, 1, 31), site_id=1),
            Movement(KIND_EXPENDITURE, 1, 2, "recorded", date(2024, 2, 1), site_id=1),
            Movement(KIND_EXPENDITURE, 1, 4, "recorded", date(2024, 2, 29), site_id=1),
            Movement(KIND_EXPENDITURE, 1, 8, "recorded", date(2024, 3, 1), site_id=1),
        ]
        metrics = summarize([], history, DateWindow(date(2024, 2, 1), date(2024, 2, 29)))
        assert metrics.expenditures == 6

    def test_active_assignments_ignore_window(self):
        history = [Movement(KIND_ASSIGNMENT, 1, 4, "active", date(2020, 1, 1), site_id=1)]
        metrics = summarize(_entries(10), history, DateWindow(date(2024, 1, 1), date(2024, 12, 31)))
        assert metrics.assignments == 0
        assert metrics.active_assignments == 4
        assert metrics.closing_balance == 6

    def test_transfer_between_sites_in_scope(self):
        move = Movement(KIND_TRANSFER, 1, 20, "completed", date(2024, 3, 1), from_site_id=1, to_site_id=2)

        everywhere = summarize([], [move], DateWindow())
        assert (everywhere.transfers_in, everywhere.transfers_out) == (20, 20)
        assert everywhere.net_movement == 0

        source_only = summarize([], [move], DateWindow(), site_ids=[1])
        assert (source_only.transfers_in, source_only.transfers_out) == (0, 20)

        destination_only = summarize([], [move], DateWindow(), site_ids=[2])
        assert (destination_only.transfers_in, destination_only.transfers_out) == (20, 0)

    def test_uncompleted_transfers_ignored(self):
        history = [
            Movement(KIND_TRANSFER, 1, 5, status, date(2024, 3, 1), from_site_id=1, to_site_id=2)
            for status in ("pending", "approved", "rejected")
        ]
        metrics = summarize([], history, DateWindow())
        assert metrics.transfers_in == metrics.transfers_out == 0

    def test_undated_movement_outside_any_window(self):
        history = [Movement(KIND_TRANSFER, 1, 5, "completed", None, from_site_id=1, to_site_id=2)]
        assert summarize([], history, DateWindow()).transfers_in == 0

    def test_to_dict_renders_costs_and_window(self):
        metrics = summarize([], [], DateWindow(date(2024, 1, 1), None))
        data = metrics.to_dict()
        assert data["purchase_cost"] == "0.0000"
        assert data["window"] == {"start": "2024-01-01", "end": None}
        assert data["closing_balance"] == 0


# =============================================================================
# COMPUTE METRICS
# =============================================================================


def _receive(store, actor, asset_type, site, quantity, unit_cost="100", request_date=None):
    acquisition = acquisition_service.create_acquisition(
        store, actor, asset_type.id, site.id, quantity, unit_cost, "Depot", request_date=request_date
    )
    acquisition_service.approve_acquisition(store, actor, acquisition.id)
    return acquisition_service.receive_acquisition(store, actor, acquisition.id)


class TestComputeMetrics:

    def test_site_scope_after_full_cycle(self, store, admin, commander_x, rifle, site_x, site_y, soldier_x):
        _receive(store, admin, rifle, site_x, 50)
        transfer = transfer_service.create_transfer(store, admin, rifle.id, site_x.id, site_y.id, 20)
        transfer_service.approve_transfer(store, admin, transfer.id)
        transfer_service.complete_transfer(store, admin, transfer.id)
        expenditure_service.record_expenditure(store, admin, rifle.id, site_x.id, 5, purpose="Range")
        assignment_service.create_assignment(store, admin, rifle.id, soldier_x.id, site_x.id, 10)

        result = reporting_service.compute_metrics(store, commander_x)
        metrics = result["metrics"]

        assert result["scope"]["site_ids"] == [site_x.id]
        assert metrics["opening_balance"] == 15
        assert metrics["purchases"] == 50
        assert metrics["transfers_out"] == 20
        assert metrics["transfers_in"] == 0
        assert metrics["expenditures"] == 5
        assert metrics["active_assignments"] == 10
        assert metrics["purchase_cost"] == "5000.0000"

    def test_admin_sees_all_sites(self, store, admin, rifle, site_x, site_y):
        _receive(store, admin, rifle, site_x, 10)
        _receive(store, admin, rifle, site_y, 5)

        result = reporting_service.compute_metrics(store, admin)
        assert result["scope"]["site_ids"] is None
        assert result["metrics"]["opening_balance"] == 15
        assert result["metrics"]["purchases"] == 15

    def test_category_and_window(self, store, admin, rifle, truck, site_x):
        _receive(store, admin, rifle, site_x, 10, request_date="2024-01-15")
        _receive(store, admin, truck, site_x, 2, request_date="2024-02-15")

        vehicles = reporting_service.compute_metrics(store, admin, category="vehicle")
        assert vehicles["metrics"]["purchases"] == 2

        january = reporting_service.compute_metrics(store, admin, start="2024-01-01", end="2024-01-31")
        assert january["metrics"]["purchases"] == 10

    def test_is_idempotent(self, store, admin, rifle, site_x):
        _receive(store, admin, rifle, site_x, 10)
        first = reporting_service.compute_metrics(store, admin)
        second = reporting_service.compute_metrics(store, admin)
        assert first == second

    def test_other_site_denied(self, store, commander_x, site_y):
        with pytest.raises(AuthorizationError):
            reporting_service.compute_metrics(store, commander_x, site_id=site_y.id)

    def test_inverted_window_rejected(self, store, admin):
        with pytest.raises(ValidationError):
            reporting_service.compute_metrics(store, admin, start="2024-02-01", end="2024-01-01")


# =============================================================================
# RECENT ACTIVITY
# =============================================================================


class TestRecentActivity:

    def test_merges_kinds_newest_first(self, store, admin, rifle, site_x, site_y, soldier_x):
        _receive(store, admin, rifle, site_x, 30)
        transfer_service.create_transfer(store, admin, rifle.id, site_x.id, site_y.id, 5)
        assignment_service.create_assignment(store, admin, rifle.id, soldier_x.id, site_x.id, 2)
        expenditure_service.record_expenditure(store, admin, rifle.id, site_x.id, 1, purpose="Demolition")

        items = reporting_service.recent_activity(store, admin)

        assert [item["kind"] for item in items] == ["expenditure", "assignment", "transfer", "acquisition"]
        assert items[0]["description"] == "Expended 1 Rifle for Demolition"
        assert items[1]["description"] == "Assigned 2 Rifle to SGT Doe"
        assert items[2]["description"] == "Transferred 5 Rifle from Site X to Site Y"
        assert items[3]["description"] == "Purchased 30 Rifle from Depot"
        assert items[2]["from_site_id"] == site_x.id

    def test_limit(self, store, stock, admin, rifle, site_x):
        stock(rifle, site_x, 10)
        for n in range(5):
            expenditure_service.record_expenditure(store, admin, rifle.id, site_x.id, 1, purpose=f"p{n}")

        items = reporting_service.recent_activity(store, admin, limit=3)
        assert [item["description"][-2:] for item in items] == ["p4", "p3", "p2"]

    @pytest.mark.parametrize("limit", [0, -1, 101, "many"])
    def test_bad_limit(self, store, admin, limit):
        with pytest.raises(ValidationError):
            reporting_service.recent_activity(store, admin, limit=limit)

    def test_scoped_to_home_site(self, store, stock, admin, commander_y, rifle, site_x, site_y):
        stock(rifle, site_x, 10)
        expenditure_service.record_expenditure(store, admin, rifle.id, site_x.id, 1, purpose="Elsewhere")
        assert reporting_service.recent_activity(store, commander_y) == []


# =============================================================================
# INVENTORY OVERVIEW
# =============================================================================


class TestInventoryOverview:

    def test_rows_carry_names_and_value(self, store, stock, admin, rifle, site_x):
        stock(rifle, site_x, 4, "12.5")

        rows = reporting_service.inventory_overview(store, admin)
        assert len(rows) == 1
        row = rows[0]
        assert row["asset_type_name"] == "Rifle"
        assert row["category"] == "weapon"
        assert row["site_code"] == "SX"
        assert row["quantity"] == 4
        assert row["total_value"] == "50.0000"

    def test_scope_and_filters(self, store, stock, admin, commander_x, rifle, truck, site_x, site_y):
        stock(rifle, site_x, 1)
        stock(truck, site_x, 1)
        stock(rifle, site_y, 1)

        assert len(reporting_service.inventory_overview(store, commander_x)) == 2
        assert len(reporting_service.inventory_overview(store, admin, category="weapon")) == 2
        assert len(reporting_service.inventory_overview(store, admin, asset_type_id=truck.id)) == 1
        with pytest.raises(AuthorizationError):
            reporting_service.inventory_overview(store, commander_x, site_id=site_y.id)

    def test_unknown_category_rejected(self, store, admin):
        with pytest.raises(ValidationError):
            reporting_service.inventory_overview(store, admin, category="snacks")
