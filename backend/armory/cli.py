# Overview: Flask CLI command groups for bootstrap, demo data and ledger inspection.

# backend/armory/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Create all tables (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system seed-demo [--with-stock]
#   Create demo sites, asset types, users and personnel; optionally receive
#   opening stock through the acquisition workflow.
#
# Ledger inspection:
# - python -m flask ledger show [--site-id 1]
#   Print ledger rows (quantity and average unit cost per asset type and site).

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import AssetType, Personnel, Site, User
from .models.reference import ROLE_ADMIN, ROLE_LOGISTICS_OFFICER, ROLE_SITE_COMMANDER, ROLE_VIEWER
from .services import acquisition_service
from .services.access_guard import Actor
from .services.ledger_service import get_ledger_store


DEMO_SITES = [
    ("Fort Alpha", "ALPHA", "North Sector"),
    ("Camp Bravo", "BRAVO", "East Sector"),
    ("Base Charlie", "CHARLIE", "South Sector"),
]

DEMO_ASSET_TYPES = [
    ("M4 Carbine", "weapon", "each", "5.56mm carbine"),
    ("M9 Pistol", "weapon", "each", "9mm sidearm"),
    ("HMMWV", "vehicle", "each", "High mobility multipurpose wheeled vehicle"),
    ("5.56mm Ball", "ammunition", "round", "Standard rifle round"),
    ("9mm Ball", "ammunition", "round", "Standard pistol round"),
    ("Body Armor", "equipment", "set", "Plate carrier with plates"),
    ("Night Vision Goggles", "equipment", "each", "PVS-14 monocular"),
]

# (asset type name, quantity, unit cost) received at every demo site
DEMO_STOCK = [
    ("M4 Carbine", 50, "950.00"),
    ("M9 Pistol", 30, "560.00"),
    ("HMMWV", 4, "220000.00"),
    ("5.56mm Ball", 20000, "0.45"),
    ("9mm Ball", 10000, "0.30"),
    ("Body Armor", 60, "1200.00"),
    ("Night Vision Goggles", 20, "3200.00"),
]


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Schema ready.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask system seed-demo' for demo data.")


def _get_or_create(model, lookup: dict, **values):
    instance = db.session.query(model).filter_by(**lookup).first()
    if instance is not None:
        return instance, False
    instance = model(**lookup, **values)
    db.session.add(instance)
    db.session.flush()
    return instance, True


@system_group.command('seed-demo')
@click.option('--with-stock', is_flag=True, help='Receive opening stock at every demo site')
@with_appcontext
def seed_demo(with_stock):
    """Idempotently create demo reference data."""
    db.create_all()

    sites = []
    for name, code, location in DEMO_SITES:
        site, created = _get_or_create(Site, {"code": code}, name=name, location=location)
        sites.append(site)
        if created:
            click.echo(f"  + site {code}")

    asset_types = {}
    for name, category, unit, description in DEMO_ASSET_TYPES:
        asset_type, created = _get_or_create(
            AssetType, {"name": name}, category=category, unit=unit, description=description
        )
        asset_types[name] = asset_type
        if created:
            click.echo(f"  + asset type {name}")

    admin, _ = _get_or_create(User, {"username": "admin"}, first_name="System", last_name="Admin", role=ROLE_ADMIN)

    for site in sites:
        slug = site.code.lower()
        commander, _ = _get_or_create(
            User,
            {"username": f"{slug}.commander"},
            first_name="Site",
            last_name="Commander",
            role=ROLE_SITE_COMMANDER,
            site_id=site.id,
        )
        site.commander_id = commander.id
        _get_or_create(
            User,
            {"username": f"{slug}.logistics"},
            first_name="Logistics",
            last_name="Officer",
            role=ROLE_LOGISTICS_OFFICER,
            site_id=site.id,
        )
        _get_or_create(
            User,
            {"username": f"{slug}.viewer"},
            first_name="Read",
            last_name="Only",
            role=ROLE_VIEWER,
            site_id=site.id,
        )
        for n in range(1, 4):
            _get_or_create(
                Personnel,
                {"service_number": f"{site.code}-{n:04d}"},
                first_name=f"Soldier{n}",
                last_name=site.code.title(),
                rank="SGT" if n == 1 else "SPC",
                unit=f"{site.code} Company",
                site_id=site.id,
            )

    db.session.commit()
    click.echo(f"PASS Demo reference data ready ({len(sites)} sites, {len(asset_types)} asset types).")

    if not with_stock:
        return

    store = get_ledger_store()
    actor = Actor.from_user(admin)
    for site in sites:
        if store.snapshot(site_id=site.id):
            click.echo(f"SKIP {site.code} already stocked")
            continue
        for name, quantity, unit_cost in DEMO_STOCK:
            acquisition = acquisition_service.create_acquisition(
                store,
                actor,
                asset_type_id=asset_types[name].id,
                site_id=site.id,
                quantity=quantity,
                unit_cost=unit_cost,
                supplier="Demo Supply Depot",
            )
            acquisition_service.approve_acquisition(store, actor, acquisition.id)
            acquisition_service.receive_acquisition(store, actor, acquisition.id)
        click.echo(f"PASS {site.code} stocked")


@click.group('ledger')
def ledger_group():
    """Ledger inspection commands."""


@ledger_group.command('show')
@click.option('--site-id', type=int, default=None, help='Only rows for this site')
@with_appcontext
def show_ledger(site_id):
    """Print ledger rows."""
    store = get_ledger_store()
    entries = store.snapshot(site_id=site_id)
    if not entries:
        click.echo("No ledger rows.")
        return

    names = {a.id: a.name for a in db.session.query(AssetType).all()}
    codes = {s.id: s.code for s in db.session.query(Site).all()}

    click.echo(f"{'SITE':<10} {'ASSET TYPE':<24} {'QTY':>10} {'AVG COST':>14}")
    for entry in entries:
        click.echo(
            f"{codes.get(entry.site_id, entry.site_id):<10} "
            f"{names.get(entry.asset_type_id, entry.asset_type_id):<24} "
            f"{entry.quantity:>10} "
            f"{entry.average_unit_cost:>14}"
        )


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(ledger_group)
