# Overview: Domain error taxonomy shared by the ledger, workflows, guard and reports.

"""
Every error a core operation can surface derives from LedgerError.

- AuthorizationError: actor lacks capability or site authority (nothing mutated)
- NotFoundError:      referenced record does not exist
- InvalidTransition:  lifecycle step not legal from the record's current state
- InsufficientStock:  decrement exceeds on-hand quantity (expected outcome, never retried)
- ContentionError:    lock or transaction bound exceeded (safe to retry the whole operation)
- StorageFault:       persistence failed unexpectedly (rolled back in full)

Input problems use armory.validation.ValidationError (a ValueError), raised
before storage is touched.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for domain errors raised by core operations."""

    code = "ledger_error"
    retryable = False

    def to_dict(self) -> dict:
        return {"error": self.code, "message": str(self)}


class AuthorizationError(LedgerError):
    code = "forbidden"

    def __init__(self, message: str, *, capability: str | None = None, site_id: int | None = None):
        super().__init__(message)
        self.capability = capability
        self.site_id = site_id

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["capability"] = self.capability
        data["site_id"] = self.site_id
        return data


class NotFoundError(LedgerError):
    code = "not_found"


class InvalidTransition(LedgerError):
    code = "invalid_transition"

    def __init__(self, kind: str, current: str, attempted: str):
        super().__init__(f"Cannot move {kind} from '{current}' to '{attempted}'")
        self.kind = kind
        self.current = current
        self.attempted = attempted

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({"kind": self.kind, "current": self.current, "attempted": self.attempted})
        return data


class InsufficientStock(LedgerError):
    code = "insufficient_stock"

    def __init__(self, *, asset_type_id: int, site_id: int, available: int, requested: int):
        super().__init__(
            f"Insufficient stock for asset type {asset_type_id} at site {site_id}: "
            f"available {available}, requested {requested}"
        )
        self.asset_type_id = asset_type_id
        self.site_id = site_id
        self.available = available
        self.requested = requested

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({
            "asset_type_id": self.asset_type_id,
            "site_id": self.site_id,
            "available": self.available,
            "requested": self.requested,
        })
        return data


class ContentionError(LedgerError):
    code = "contention"
    retryable = True

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["retryable"] = True
        return data


class StorageFault(LedgerError):
    code = "storage_fault"
