"""
Transaction lifecycle tests.

Verifies every transition table is exhaustive: each (state, target) pair not
listed is rejected with InvalidTransition, and the workflows enforce the
tables on real records.
"""

import pytest

from armory.services import acquisition_service, assignment_service, transfer_service
from armory.services.errors import InvalidTransition
from armory.services.lifecycle_service import (
    ACQUISITION_LIFECYCLE,
    ASSIGNMENT_LIFECYCLE,
    EXPENDITURE_LIFECYCLE,
    LIFECYCLES,
    TRANSFER_LIFECYCLE,
)


ALLOWED = {
    "acquisition": {
        ("pending", "approved"),
        ("pending", "cancelled"),
        ("approved", "received"),
        ("approved", "cancelled"),
    },
    "transfer": {
        ("pending", "approved"),
        ("pending", "rejected"),
        ("approved", "completed"),
        ("approved", "rejected"),
    },
    "assignment": {
        ("active", "returned"),
    },
    "expenditure": set(),
}


def _all_pairs():
    for kind, lifecycle in LIFECYCLES.items():
        for current in sorted(lifecycle.states):
            for target in sorted(lifecycle.states):
                yield kind, current, target


# =============================================================================
# TRANSITION TABLES (pure)
# =============================================================================


class TestTransitionTables:

    @pytest.mark.parametrize("kind,current,target", list(_all_pairs()))
    def test_only_listed_pairs_are_allowed(self, kind, current, target):
        lifecycle = LIFECYCLES[kind]
        if (current, target) in ALLOWED[kind]:
            lifecycle.check(current, target)
        else:
            with pytest.raises(InvalidTransition) as exc:
                lifecycle.check(current, target)
            assert exc.value.current == current
            assert exc.value.attempted == target
            assert exc.value.kind == kind

    def test_initial_states(self):
        assert ACQUISITION_LIFECYCLE.initial == "pending"
        assert TRANSFER_LIFECYCLE.initial == "pending"
        assert ASSIGNMENT_LIFECYCLE.initial == "active"
        assert EXPENDITURE_LIFECYCLE.initial == "recorded"

    def test_terminal_states(self):
        assert ACQUISITION_LIFECYCLE.terminal_states == {"received", "cancelled"}
        assert TRANSFER_LIFECYCLE.terminal_states == {"completed", "rejected"}
        assert ASSIGNMENT_LIFECYCLE.terminal_states == {"returned"}
        assert EXPENDITURE_LIFECYCLE.terminal_states == {"recorded"}

    def test_unknown_status_is_rejected(self):
        assert not ACQUISITION_LIFECYCLE.can_transition("shipped", "received")
        with pytest.raises(ValueError):
            ACQUISITION_LIFECYCLE.validate_status("shipped")

    def test_invalid_transition_payload(self):
        with pytest.raises(InvalidTransition) as exc:
            ACQUISITION_LIFECYCLE.check("pending", "received")
        assert exc.value.to_dict() == {
            "error": "invalid_transition",
            "message": "Cannot move acquisition from 'pending' to 'received'",
            "kind": "acquisition",
            "current": "pending",
            "attempted": "received",
        }


# =============================================================================
# WORKFLOWS ENFORCE THE TABLES
# =============================================================================


class TestAcquisitionTransitions:

    @pytest.fixture
    def pending(self, store, commander_x, rifle, site_x):
        return acquisition_service.create_acquisition(
            store, commander_x, rifle.id, site_x.id, quantity=5, unit_cost="10", supplier="Depot"
        )

    def test_receive_from_pending_fails(self, store, commander_x, pending):
        with pytest.raises(InvalidTransition) as exc:
            acquisition_service.receive_acquisition(store, commander_x, pending.id)
        assert exc.value.current == "pending"
        assert exc.value.attempted == "received"
        assert store.quantity_on_hand(pending.asset_type_id, pending.site_id) == 0

    def test_approve_twice_fails(self, store, commander_x, pending):
        acquisition_service.approve_acquisition(store, commander_x, pending.id)
        with pytest.raises(InvalidTransition):
            acquisition_service.approve_acquisition(store, commander_x, pending.id)

    def test_cancel_received_fails(self, store, commander_x, pending):
        acquisition_service.approve_acquisition(store, commander_x, pending.id)
        acquisition_service.receive_acquisition(store, commander_x, pending.id)
        with pytest.raises(InvalidTransition):
            acquisition_service.cancel_acquisition(store, commander_x, pending.id)

    @pytest.mark.parametrize("operation", ["approve", "receive", "cancel"])
    def test_cancelled_is_terminal(self, store, commander_x, pending, operation):
        acquisition_service.cancel_acquisition(store, commander_x, pending.id)
        func = getattr(acquisition_service, f"{operation}_acquisition")
        with pytest.raises(InvalidTransition):
            func(store, commander_x, pending.id)

    def test_receive_twice_does_not_double_stock(self, store, commander_x, pending):
        acquisition_service.approve_acquisition(store, commander_x, pending.id)
        acquisition_service.receive_acquisition(store, commander_x, pending.id)
        with pytest.raises(InvalidTransition):
            acquisition_service.receive_acquisition(store, commander_x, pending.id)
        assert store.quantity_on_hand(pending.asset_type_id, pending.site_id) == 5


class TestTransferTransitions:

    @pytest.fixture
    def pending(self, store, stock, commander_x, rifle, site_x, site_y):
        stock(rifle, site_x, 10)
        return transfer_service.create_transfer(store, commander_x, rifle.id, site_x.id, site_y.id, quantity=4)

    def test_complete_from_pending_fails(self, store, commander_y, pending):
        with pytest.raises(InvalidTransition) as exc:
            transfer_service.complete_transfer(store, commander_y, pending.id)
        assert exc.value.current == "pending"

    @pytest.mark.parametrize("operation", ["approve", "complete", "reject"])
    def test_rejected_is_terminal(self, store, admin, pending, operation):
        transfer_service.reject_transfer(store, admin, pending.id)
        func = getattr(transfer_service, f"{operation}_transfer")
        with pytest.raises(InvalidTransition):
            func(store, admin, pending.id)

    @pytest.mark.parametrize("operation", ["approve", "complete", "reject"])
    def test_completed_is_terminal(self, store, admin, pending, operation):
        transfer_service.approve_transfer(store, admin, pending.id)
        transfer_service.complete_transfer(store, admin, pending.id)
        func = getattr(transfer_service, f"{operation}_transfer")
        with pytest.raises(InvalidTransition):
            func(store, admin, pending.id)


class TestAssignmentTransitions:

    def test_return_twice_fails(self, store, stock, commander_x, rifle, site_x, soldier_x):
        stock(rifle, site_x, 10)
        assignment = assignment_service.create_assignment(
            store, commander_x, rifle.id, soldier_x.id, site_x.id, quantity=3
        )
        assignment_service.return_assignment(store, commander_x, assignment.id)

        with pytest.raises(InvalidTransition) as exc:
            assignment_service.return_assignment(store, commander_x, assignment.id)
        assert exc.value.current == "returned"
        assert store.quantity_on_hand(rifle.id, site_x.id) == 10
