from __future__ import annotations

from ..extensions import db
from armory.time_utils import to_utc_z


# Roles supplied by the identity collaborator (fixed, small set)
ROLE_ADMIN = "admin"
ROLE_SITE_COMMANDER = "site_commander"
ROLE_LOGISTICS_OFFICER = "logistics_officer"
ROLE_VIEWER = "viewer"
VALID_ROLES = {ROLE_ADMIN, ROLE_SITE_COMMANDER, ROLE_LOGISTICS_OFFICER, ROLE_VIEWER}

ASSET_CATEGORIES = {"weapon", "vehicle", "ammunition", "equipment"}


class Site(db.Model):
    """
    Organizational location holding its own ledger rows.

    Reference data: maintained by an external collaborator, read by the core.
    commander_id names the designated site commander (informational only;
    authority is decided from the acting user's role and home site).
    """
    __tablename__ = "sites"
    __table_args__ = (
        db.UniqueConstraint("code", name="uq_sites_code"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    code = db.Column(db.String(32), nullable=False)
    location = db.Column(db.String(255), nullable=True)
    # Plain id (no FK) so sites and users do not form a foreign-key cycle
    commander_id = db.Column(db.Integer, nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Site id={self.id} code={self.code!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "location": self.location,
            "commander_id": self.commander_id,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }


class AssetType(db.Model):
    """Immutable catalogue entry: what is being counted and in which unit."""
    __tablename__ = "asset_types"
    __table_args__ = (
        db.UniqueConstraint("name", name="uq_asset_types_name"),
        db.Index("ix_asset_types_category", "category"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    category = db.Column(db.String(32), nullable=False)
    unit = db.Column(db.String(32), nullable=False, default="each")
    description = db.Column(db.Text, nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<AssetType id={self.id} name={self.name!r} category={self.category}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "unit": self.unit,
            "description": self.description,
            "is_active": self.is_active,
        }


class User(db.Model):
    """
    Acting user as known to the core: role and home site only.

    Credentials and sessions live with the identity collaborator; the core
    never authenticates, it only resolves an already-authenticated user id.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.UniqueConstraint("username", name="uq_users_username"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), nullable=False)
    first_name = db.Column(db.String(64), nullable=True)
    last_name = db.Column(db.String(64), nullable=True)
    role = db.Column(db.String(32), nullable=False, default=ROLE_VIEWER)
    # Home site; administrators may have none
    site_id = db.Column(db.Integer, db.ForeignKey("sites.id"), nullable=True, index=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    site = db.relationship("Site", foreign_keys=[site_id])

    @property
    def full_name(self) -> str:
        parts = [p for p in (self.first_name, self.last_name) if p]
        return " ".join(parts) or self.username

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "full_name": self.full_name,
            "role": self.role,
            "site_id": self.site_id,
            "is_active": self.is_active,
        }


class Personnel(db.Model):
    """Service member who can hold assigned assets."""
    __tablename__ = "personnel"
    __table_args__ = (
        db.UniqueConstraint("service_number", name="uq_personnel_service_number"),
        db.Index("ix_personnel_site_rank", "site_id", "rank"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    service_number = db.Column(db.String(32), nullable=False)
    first_name = db.Column(db.String(64), nullable=False)
    last_name = db.Column(db.String(64), nullable=False)
    rank = db.Column(db.String(32), nullable=True)
    unit = db.Column(db.String(64), nullable=True)
    site_id = db.Column(db.Integer, db.ForeignKey("sites.id"), nullable=False, index=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    site = db.relationship("Site", backref=db.backref("personnel", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "service_number": self.service_number,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "rank": self.rank,
            "unit": self.unit,
            "site_id": self.site_id,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }
