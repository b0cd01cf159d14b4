# Overview: Capability category constants for grouping related capabilities.


class CapabilityCategory:
    """Capability categories for organization and display."""
    INVENTORY = "INVENTORY"
    ACQUISITIONS = "ACQUISITIONS"
    TRANSFERS = "TRANSFERS"
    ASSIGNMENTS = "ASSIGNMENTS"
    EXPENDITURES = "EXPENDITURES"
    REFERENCE = "REFERENCE"
