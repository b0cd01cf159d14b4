"""
Assignment workflow tests.

Verifies:
- Scenario D: assign 10 (30 -> 20, active), return (20 -> 30, returned)
- Insufficient stock persists no assignment
- Return does not move the cost basis
"""

from decimal import Decimal

import pytest

from armory.models import Assignment
from armory.services import assignment_service
from armory.services.errors import AuthorizationError, InsufficientStock, NotFoundError, StorageFault
from armory.validation import ValidationError


class TestAssignmentLifecycle:

    def test_scenario_d(self, store, stock, commander_x, rifle, site_x, soldier_x):
        stock(rifle, site_x, 30, "100")

        assignment = assignment_service.create_assignment(
            store, commander_x, rifle.id, soldier_x.id, site_x.id, quantity=10, serial_numbers="R-001..R-010"
        )
        assert assignment.status == "active"
        assert assignment.assigned_by == commander_x.user_id
        assert store.quantity_on_hand(rifle.id, site_x.id) == 20

        returned = assignment_service.return_assignment(
            store, commander_x, assignment.id, return_date="2024-05-05", notes="All accounted for"
        )
        assert returned.status == "returned"
        assert returned.returned_by == commander_x.user_id
        assert returned.return_date.isoformat() == "2024-05-05"
        assert "All accounted for" in returned.notes
        assert store.quantity_on_hand(rifle.id, site_x.id) == 30
        assert store.average_cost(rifle.id, site_x.id) == Decimal("100")

    def test_return_uses_current_average_cost(self, store, stock, commander_x, rifle, site_x, soldier_x):
        stock(rifle, site_x, 10, "100")
        assignment = assignment_service.create_assignment(store, commander_x, rifle.id, soldier_x.id, site_x.id, 5)

        # Cost basis moves while the assignment is out
        stock(rifle, site_x, 5, "200")
        assert store.average_cost(rifle.id, site_x.id) == Decimal("150")

        assignment_service.return_assignment(store, commander_x, assignment.id)
        assert store.quantity_on_hand(rifle.id, site_x.id) == 15
        assert store.average_cost(rifle.id, site_x.id) == Decimal("150")

    def test_failed_return_leaves_assignment_active(
        self, store, stock, commander_x, rifle, site_x, soldier_x, monkeypatch
    ):
        stock(rifle, site_x, 30, "100")
        assignment = assignment_service.create_assignment(store, commander_x, rifle.id, soldier_x.id, site_x.id, 10)

        def broken_replenish(*args, **kwargs):
            raise StorageFault("ledger unavailable")

        monkeypatch.setattr(store, "replenish", broken_replenish)

        with pytest.raises(StorageFault):
            assignment_service.return_assignment(store, commander_x, assignment.id)

        reloaded = assignment_service.get_assignment(store, commander_x, assignment.id)
        assert reloaded.status == "active"
        assert reloaded.returned_by is None
        assert reloaded.return_date is None
        assert store.quantity_on_hand(rifle.id, site_x.id) == 20

    def test_insufficient_stock_persists_nothing(self, store, stock, commander_x, rifle, site_x, soldier_x, db_session):
        stock(rifle, site_x, 3)
        with pytest.raises(InsufficientStock) as exc:
            assignment_service.create_assignment(store, commander_x, rifle.id, soldier_x.id, site_x.id, 4)
        assert (exc.value.available, exc.value.requested) == (3, 4)
        assert db_session.query(Assignment).count() == 0
        assert store.quantity_on_hand(rifle.id, site_x.id) == 3

    def test_inactive_personnel_rejected(self, store, stock, commander_x, rifle, site_x, soldier_x, db_session):
        stock(rifle, site_x, 3)
        soldier_x.is_active = False
        db_session.commit()
        with pytest.raises(ValidationError):
            assignment_service.create_assignment(store, commander_x, rifle.id, soldier_x.id, site_x.id, 1)
        assert store.quantity_on_hand(rifle.id, site_x.id) == 3

    def test_unknown_personnel_rejected(self, store, stock, commander_x, rifle, site_x):
        stock(rifle, site_x, 3)
        with pytest.raises(NotFoundError):
            assignment_service.create_assignment(store, commander_x, rifle.id, 777, site_x.id, 1)

    def test_logistics_officer_cannot_assign(self, store, stock, logistics_x, rifle, site_x, soldier_x):
        stock(rifle, site_x, 3)
        with pytest.raises(AuthorizationError):
            assignment_service.create_assignment(store, logistics_x, rifle.id, soldier_x.id, site_x.id, 1)

    def test_other_site_cannot_return(self, store, stock, commander_x, commander_y, rifle, site_x, soldier_x):
        stock(rifle, site_x, 3)
        assignment = assignment_service.create_assignment(store, commander_x, rifle.id, soldier_x.id, site_x.id, 1)
        with pytest.raises(AuthorizationError):
            assignment_service.return_assignment(store, commander_y, assignment.id)
        assert assignment_service.get_assignment(store, commander_x, assignment.id).status == "active"


class TestListAssignments:

    def test_personnel_and_status_filters(self, store, stock, commander_x, rifle, site_x, soldier_x, db_session):
        from armory.models import Personnel

        other = Personnel(service_number="SX-0002", first_name="Jane", last_name="Roe", site_id=site_x.id)
        db_session.add(other)
        db_session.commit()

        stock(rifle, site_x, 10)
        mine = assignment_service.create_assignment(store, commander_x, rifle.id, soldier_x.id, site_x.id, 1)
        assignment_service.create_assignment(store, commander_x, rifle.id, other.id, site_x.id, 1)
        assignment_service.return_assignment(store, commander_x, mine.id)

        by_person = assignment_service.list_assignments(store, commander_x, personnel_id=soldier_x.id)
        assert [a.id for a in by_person.items] == [mine.id]

        active = assignment_service.list_assignments(store, commander_x, status="active")
        assert [a.personnel_id for a in active.items] == [other.id]
