# Overview: Capability system package.
# Re-exports all public APIs so callers import from armory.permissions.

from .categories import CapabilityCategory
from .definitions import (
    CAPABILITY_DEFINITIONS,
    INVENTORY_CAPABILITIES,
    ACQUISITION_CAPABILITIES,
    TRANSFER_CAPABILITIES,
    ASSIGNMENT_CAPABILITIES,
    EXPENDITURE_CAPABILITIES,
    REFERENCE_CAPABILITIES,
)
from .roles import DEFAULT_ROLE_CAPABILITIES
from .helpers import (
    get_all_capability_codes,
    get_capabilities_by_category,
    validate_capability_code,
    role_has_capability,
)

__all__ = [
    "CapabilityCategory",
    "CAPABILITY_DEFINITIONS",
    "INVENTORY_CAPABILITIES",
    "ACQUISITION_CAPABILITIES",
    "TRANSFER_CAPABILITIES",
    "ASSIGNMENT_CAPABILITIES",
    "EXPENDITURE_CAPABILITIES",
    "REFERENCE_CAPABILITIES",
    "DEFAULT_ROLE_CAPABILITIES",
    "get_all_capability_codes",
    "get_capabilities_by_category",
    "validate_capability_code",
    "role_has_capability",
]
