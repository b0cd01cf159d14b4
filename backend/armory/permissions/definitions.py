# Overview: All capability definitions organized by category.
# Each capability is defined as: (code, name, description, category)

from .categories import CapabilityCategory


# -- INVENTORY --

INVENTORY_CAPABILITIES = [
    (
        "VIEW_INVENTORY",
        "View Inventory",
        "View ledger quantities and average costs",
        CapabilityCategory.INVENTORY,
    ),
    (
        "VIEW_TRANSACTIONS",
        "View Transactions",
        "List and read acquisitions, transfers, assignments and expenditures",
        CapabilityCategory.INVENTORY,
    ),
    (
        "VIEW_METRICS",
        "View Metrics",
        "View dashboard balances, net movement and recent activity",
        CapabilityCategory.INVENTORY,
    ),
]


# -- ACQUISITIONS --

ACQUISITION_CAPABILITIES = [
    (
        "CREATE_ACQUISITION",
        "Create Acquisition",
        "Request a purchase of stock for a site",
        CapabilityCategory.ACQUISITIONS,
    ),
    (
        "APPROVE_ACQUISITION",
        "Approve Acquisition",
        "Approve a pending purchase request",
        CapabilityCategory.ACQUISITIONS,
    ),
    (
        "RECEIVE_ACQUISITION",
        "Receive Acquisition",
        "Receive an approved purchase into the site ledger",
        CapabilityCategory.ACQUISITIONS,
    ),
    (
        "CANCEL_ACQUISITION",
        "Cancel Acquisition",
        "Cancel a pending or approved purchase",
        CapabilityCategory.ACQUISITIONS,
    ),
]


# -- TRANSFERS --

TRANSFER_CAPABILITIES = [
    (
        "CREATE_TRANSFER",
        "Create Transfer",
        "Initiate a transfer out of a site",
        CapabilityCategory.TRANSFERS,
    ),
    (
        "APPROVE_TRANSFER",
        "Approve Transfer",
        "Approve a transfer leaving the source site",
        CapabilityCategory.TRANSFERS,
    ),
    (
        "COMPLETE_TRANSFER",
        "Complete Transfer",
        "Receive an approved transfer at the destination site (moves stock)",
        CapabilityCategory.TRANSFERS,
    ),
    (
        "REJECT_TRANSFER",
        "Reject Transfer",
        "Reject a pending or approved transfer",
        CapabilityCategory.TRANSFERS,
    ),
]


# -- ASSIGNMENTS --

ASSIGNMENT_CAPABILITIES = [
    (
        "CREATE_ASSIGNMENT",
        "Create Assignment",
        "Issue stock to a service member",
        CapabilityCategory.ASSIGNMENTS,
    ),
    (
        "RETURN_ASSIGNMENT",
        "Return Assignment",
        "Return issued stock to the site ledger",
        CapabilityCategory.ASSIGNMENTS,
    ),
]


# -- EXPENDITURES --

EXPENDITURE_CAPABILITIES = [
    (
        "RECORD_EXPENDITURE",
        "Record Expenditure",
        "Record irreversible consumption of stock",
        CapabilityCategory.EXPENDITURES,
    ),
]


# -- REFERENCE --

REFERENCE_CAPABILITIES = [
    (
        "VIEW_REFERENCE",
        "View Reference Data",
        "View sites, asset types and personnel",
        CapabilityCategory.REFERENCE,
    ),
    (
        "MANAGE_PERSONNEL",
        "Manage Personnel",
        "Register service members at a site",
        CapabilityCategory.REFERENCE,
    ),
]


CAPABILITY_DEFINITIONS = (
    INVENTORY_CAPABILITIES
    + ACQUISITION_CAPABILITIES
    + TRANSFER_CAPABILITIES
    + ASSIGNMENT_CAPABILITIES
    + EXPENDITURE_CAPABILITIES
    + REFERENCE_CAPABILITIES
)
