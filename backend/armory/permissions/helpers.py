# Overview: Utility functions for capability lookups and validation.

from .definitions import CAPABILITY_DEFINITIONS
from .roles import DEFAULT_ROLE_CAPABILITIES


def get_all_capability_codes():
    """Get list of all capability codes."""
    return [cap[0] for cap in CAPABILITY_DEFINITIONS]


def get_capabilities_by_category(category):
    """Get all capabilities in a category."""
    return [cap for cap in CAPABILITY_DEFINITIONS if cap[3] == category]


def validate_capability_code(code):
    """Check if a capability code is valid."""
    return code in get_all_capability_codes()


def role_has_capability(role, code):
    """Unknown roles hold nothing."""
    return code in DEFAULT_ROLE_CAPABILITIES.get(role, set())
