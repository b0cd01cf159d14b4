# Overview: Access guard; one capability check over (actor, capability, site).

"""
Access Guard

Every workflow entry point and every ledger/report read asks this module,
and only this module, whether an actor may proceed.

RULES:
- Capability: the actor's role must hold the capability (armory.permissions).
- Site scope: administrators act on any site; every other role only on its
  home site. An actor without a home site (non-admin) can act nowhere.
- Fail closed: unknown roles hold no capabilities.

Denials raise AuthorizationError before any mutation is attempted.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from ..models.reference import ROLE_ADMIN
from ..permissions import role_has_capability, validate_capability_code
from .errors import AuthorizationError


@dataclass(frozen=True)
class Actor:
    """Authenticated party as supplied by the identity collaborator."""
    user_id: int
    role: str
    site_id: int | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @classmethod
    def from_user(cls, user) -> "Actor":
        return cls(user_id=user.id, role=user.role, site_id=user.site_id)


def _check_code(capability: str) -> None:
    if not validate_capability_code(capability):
        raise ValueError(f"Unknown capability '{capability}'")


def has_site_authority(actor: Actor, site_id: int | None) -> bool:
    if actor.is_admin:
        return True
    return actor.site_id is not None and site_id is not None and actor.site_id == site_id


def can(actor: Actor, capability: str, site_id: int | None) -> bool:
    """True when the actor's role holds `capability` and the actor has authority over `site_id`."""
    _check_code(capability)
    return role_has_capability(actor.role, capability) and has_site_authority(actor, site_id)


def require(actor: Actor, capability: str, site_id: int | None) -> None:
    _check_code(capability)
    if not role_has_capability(actor.role, capability):
        raise AuthorizationError(
            f"Role '{actor.role}' lacks {capability}",
            capability=capability,
            site_id=site_id,
        )
    if not has_site_authority(actor, site_id):
        raise AuthorizationError(
            f"User {actor.user_id} has no authority over site {site_id}",
            capability=capability,
            site_id=site_id,
        )


def require_any_site(actor: Actor, capability: str, site_ids: Iterable[int]) -> None:
    """Pass when the actor may exercise `capability` on at least one of `site_ids`."""
    site_ids = list(site_ids)
    for site_id in site_ids:
        if can(actor, capability, site_id):
            return
    # Re-run on the first site for a precise error message
    require(actor, capability, site_ids[0] if site_ids else None)


def resolve_scope(actor: Actor, capability: str, site_id: int | None = None) -> list[int] | None:
    """
    Sites a read may cover.

    Returns None for "all sites" (admin without a site filter), otherwise the
    single permitted site. A non-admin asking for another site is refused.
    """
    _check_code(capability)
    if not role_has_capability(actor.role, capability):
        raise AuthorizationError(
            f"Role '{actor.role}' lacks {capability}",
            capability=capability,
            site_id=site_id,
        )
    if actor.is_admin:
        return None if site_id is None else [site_id]

    if actor.site_id is None:
        raise AuthorizationError(
            f"User {actor.user_id} has no home site",
            capability=capability,
            site_id=site_id,
        )
    if site_id is not None and site_id != actor.site_id:
        raise AuthorizationError(
            f"User {actor.user_id} has no authority over site {site_id}",
            capability=capability,
            site_id=site_id,
        )
    return [actor.site_id]
