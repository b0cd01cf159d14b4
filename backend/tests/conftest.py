"""
Pytest fixtures for Armory backend tests.

Provides test database setup, reference data (sites, asset types, users,
personnel), a ledger store and the test client.
"""

import pytest
from armory import create_app
from armory.extensions import db
from armory.models import AssetType, Personnel, Site, User
from armory.models.reference import ROLE_ADMIN, ROLE_LOGISTICS_OFFICER, ROLE_SITE_COMMANDER, ROLE_VIEWER
from armory.services.access_guard import Actor
from armory.services.ledger_service import get_ledger_store


TEST_CONFIG = {
    'TESTING': True,
    'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
    'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    'LEDGER_LOCK_TIMEOUT_SECONDS': 2.0,
    'LOG_LEVEL': 'WARNING',
}


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TEST_CONFIG)

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Fresh data for each test (schema kept)."""
    db.session.remove()
    meta = db.metadata
    for table in reversed(meta.sorted_tables):
        db.session.execute(table.delete())
    db.session.commit()

    yield db.session

    # Cleanup after test
    db.session.rollback()
    db.session.remove()


@pytest.fixture(scope='function')
def store(db_session):
    """Ledger store bound to the test session."""
    return get_ledger_store()


# =============================================================================
# REFERENCE DATA
# =============================================================================


@pytest.fixture(scope='function')
def site_x(db_session):
    site = Site(name="Site X", code="SX", location="North")
    db_session.add(site)
    db_session.commit()
    return site


@pytest.fixture(scope='function')
def site_y(db_session):
    site = Site(name="Site Y", code="SY", location="South")
    db_session.add(site)
    db_session.commit()
    return site


@pytest.fixture(scope='function')
def rifle(db_session):
    asset_type = AssetType(name="Rifle", category="weapon", unit="each")
    db_session.add(asset_type)
    db_session.commit()
    return asset_type


@pytest.fixture(scope='function')
def truck(db_session):
    asset_type = AssetType(name="Truck", category="vehicle", unit="each")
    db_session.add(asset_type)
    db_session.commit()
    return asset_type


def _user(db_session, username, role, site=None):
    user = User(
        username=username,
        first_name=username.split("_")[0].title(),
        last_name="Test",
        role=role,
        site_id=site.id if site is not None else None,
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def admin_user(db_session):
    return _user(db_session, "admin", ROLE_ADMIN)


@pytest.fixture(scope='function')
def commander_x_user(db_session, site_x):
    return _user(db_session, "commander_x", ROLE_SITE_COMMANDER, site_x)


@pytest.fixture(scope='function')
def commander_y_user(db_session, site_y):
    return _user(db_session, "commander_y", ROLE_SITE_COMMANDER, site_y)


@pytest.fixture(scope='function')
def logistics_x_user(db_session, site_x):
    return _user(db_session, "logistics_x", ROLE_LOGISTICS_OFFICER, site_x)


@pytest.fixture(scope='function')
def viewer_x_user(db_session, site_x):
    return _user(db_session, "viewer_x", ROLE_VIEWER, site_x)


@pytest.fixture(scope='function')
def admin(admin_user):
    return Actor.from_user(admin_user)


@pytest.fixture(scope='function')
def commander_x(commander_x_user):
    return Actor.from_user(commander_x_user)


@pytest.fixture(scope='function')
def commander_y(commander_y_user):
    return Actor.from_user(commander_y_user)


@pytest.fixture(scope='function')
def logistics_x(logistics_x_user):
    return Actor.from_user(logistics_x_user)


@pytest.fixture(scope='function')
def viewer_x(viewer_x_user):
    return Actor.from_user(viewer_x_user)


@pytest.fixture(scope='function')
def soldier_x(db_session, site_x):
    person = Personnel(
        service_number="SX-0001",
        first_name="John",
        last_name="Doe",
        rank="SGT",
        unit="1st Platoon",
        site_id=site_x.id,
    )
    db_session.add(person)
    db_session.commit()
    return person


@pytest.fixture(scope='function')
def stock(store):
    """Put stock on the ledger directly: stock(asset_type, site, quantity, unit_cost)."""
    def _stock(asset_type, site, quantity, unit_cost="100.00"):
        with store.unit_of_work((asset_type.id, site.id)):
            store.replenish(asset_type.id, site.id, quantity, unit_cost)
        return store.get_entry(asset_type.id, site.id)
    return _stock


def actor_headers(user) -> dict:
    """Helper to create identity headers for a user."""
    return {'X-User-Id': str(user.id)}


@pytest.fixture(scope='function')
def headers():
    return actor_headers
