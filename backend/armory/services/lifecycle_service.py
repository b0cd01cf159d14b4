# Overview: Explicit transition tables for every transaction kind.

"""
Armory Transaction Lifecycles

================================================================================
Each transaction kind has one exhaustive transition table. A transition that
is not in the table is rejected with InvalidTransition; there are no ad hoc
status checks anywhere else.
================================================================================

ACQUISITION:  pending -> approved -> received
              pending|approved -> cancelled
TRANSFER:     pending -> approved -> completed
              pending|approved -> rejected
ASSIGNMENT:   active -> returned
EXPENDITURE:  recorded (created terminal, no transitions)

Stock moves only on:
- acquisition  approved -> received   (replenish site)
- transfer     approved -> completed  (decrement source, replenish destination)
- assignment   creation / active -> returned (decrement / replenish site)
- expenditure  creation               (decrement site)
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .errors import InvalidTransition


# Acquisition statuses
ACQUISITION_PENDING = "pending"
ACQUISITION_APPROVED = "approved"
ACQUISITION_RECEIVED = "received"
ACQUISITION_CANCELLED = "cancelled"

# Transfer statuses
TRANSFER_PENDING = "pending"
TRANSFER_APPROVED = "approved"
TRANSFER_COMPLETED = "completed"
TRANSFER_REJECTED = "rejected"

# Assignment statuses
ASSIGNMENT_ACTIVE = "active"
ASSIGNMENT_RETURNED = "returned"

# Expenditure has a single terminal status
EXPENDITURE_RECORDED = "recorded"


@dataclass(frozen=True)
class Lifecycle:
    """State machine for one transaction kind."""
    kind: str
    initial: str
    transitions: dict[str, frozenset[str]] = field(default_factory=dict)

    @property
    def states(self) -> frozenset[str]:
        return frozenset(self.transitions)

    @property
    def terminal_states(self) -> frozenset[str]:
        return frozenset(s for s, targets in self.transitions.items() if not targets)

    def validate_status(self, status: str) -> None:
        if status not in self.transitions:
            raise ValueError(
                f"Invalid {self.kind} status '{status}'. "
                f"Must be one of: {', '.join(sorted(self.transitions))}"
            )

    def can_transition(self, from_status: str, to_status: str) -> bool:
        return to_status in self.transitions.get(from_status, frozenset())

    def check(self, from_status: str, to_status: str) -> None:
        """Raise InvalidTransition unless (from_status -> to_status) is in the table."""
        if not self.can_transition(from_status, to_status):
            raise InvalidTransition(self.kind, from_status, to_status)


ACQUISITION_LIFECYCLE = Lifecycle(
    kind="acquisition",
    initial=ACQUISITION_PENDING,
    transitions={
        ACQUISITION_PENDING: frozenset({ACQUISITION_APPROVED, ACQUISITION_CANCELLED}),
        ACQUISITION_APPROVED: frozenset({ACQUISITION_RECEIVED, ACQUISITION_CANCELLED}),
        ACQUISITION_RECEIVED: frozenset(),
        ACQUISITION_CANCELLED: frozenset(),
    },
)

TRANSFER_LIFECYCLE = Lifecycle(
    kind="transfer",
    initial=TRANSFER_PENDING,
    transitions={
        TRANSFER_PENDING: frozenset({TRANSFER_APPROVED, TRANSFER_REJECTED}),
        TRANSFER_APPROVED: frozenset({TRANSFER_COMPLETED, TRANSFER_REJECTED}),
        TRANSFER_COMPLETED: frozenset(),
        TRANSFER_REJECTED: frozenset(),
    },
)

ASSIGNMENT_LIFECYCLE = Lifecycle(
    kind="assignment",
    initial=ASSIGNMENT_ACTIVE,
    transitions={
        ASSIGNMENT_ACTIVE: frozenset({ASSIGNMENT_RETURNED}),
        ASSIGNMENT_RETURNED: frozenset(),
    },
)

EXPENDITURE_LIFECYCLE = Lifecycle(
    kind="expenditure",
    initial=EXPENDITURE_RECORDED,
    transitions={
        EXPENDITURE_RECORDED: frozenset(),
    },
)

LIFECYCLES = {
    lc.kind: lc
    for lc in (ACQUISITION_LIFECYCLE, TRANSFER_LIFECYCLE, ASSIGNMENT_LIFECYCLE, EXPENDITURE_LIFECYCLE)
}
