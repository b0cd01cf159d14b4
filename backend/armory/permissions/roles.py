# Overview: Capabilities granted to each role.
# Site scope is applied separately by the access guard: only admins act across sites.

from armory.models.reference import (
    ROLE_ADMIN,
    ROLE_LOGISTICS_OFFICER,
    ROLE_SITE_COMMANDER,
    ROLE_VIEWER,
)
from .definitions import CAPABILITY_DEFINITIONS


_READ_ONLY = {
    "VIEW_INVENTORY",
    "VIEW_TRANSACTIONS",
    "VIEW_METRICS",
    "VIEW_REFERENCE",
}

DEFAULT_ROLE_CAPABILITIES = {
    ROLE_ADMIN: {code for code, _, _, _ in CAPABILITY_DEFINITIONS},
    ROLE_SITE_COMMANDER: _READ_ONLY | {
        "CREATE_ACQUISITION",
        "APPROVE_ACQUISITION",
        "RECEIVE_ACQUISITION",
        "CANCEL_ACQUISITION",
        "CREATE_TRANSFER",
        "APPROVE_TRANSFER",
        "COMPLETE_TRANSFER",
        "REJECT_TRANSFER",
        "CREATE_ASSIGNMENT",
        "RETURN_ASSIGNMENT",
        "RECORD_EXPENDITURE",
        "MANAGE_PERSONNEL",
    },
    ROLE_LOGISTICS_OFFICER: _READ_ONLY | {
        "CREATE_ACQUISITION",
        "CREATE_TRANSFER",
    },
    ROLE_VIEWER: set(_READ_ONLY),
}
