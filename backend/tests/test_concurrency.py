"""
Concurrency tests for the ledger critical section.

Runs against a file-backed SQLite database so every thread gets its own
connection, the way concurrent requests do in a deployed worker.

Verifies:
- Two simultaneous expenditures of 20 against 30 on hand: exactly one wins
- Many concurrent decrements never drive quantity below zero
"""

import threading

import pytest

from armory import create_app
from armory.extensions import db
from armory.models import AssetType, Expenditure, Site, User
from armory.models.reference import ROLE_SITE_COMMANDER
from armory.services import expenditure_service
from armory.services.access_guard import Actor
from armory.services.errors import InsufficientStock
from armory.services.ledger_service import get_ledger_store


THREAD_TIMEOUT_SECONDS = 30


@pytest.fixture
def file_app(tmp_path):
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'ledger.db'}",
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'LEDGER_LOCK_TIMEOUT_SECONDS': 10.0,
        'LOG_LEVEL': 'WARNING',
    })
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()
        db.engine.dispose()


@pytest.fixture
def seeded(file_app):
    """Site, asset type and commander in the file database; returns plain ids."""
    with file_app.app_context():
        site = Site(name="Site X", code="SX")
        asset_type = AssetType(name="Grenade", category="ammunition", unit="each")
        db.session.add_all([site, asset_type])
        db.session.commit()
        user = User(username="commander", role=ROLE_SITE_COMMANDER, site_id=site.id)
        db.session.add(user)
        db.session.commit()
        ids = {"site_id": site.id, "asset_type_id": asset_type.id, "user_id": user.id}
    return ids


def _stock(app, ids, quantity):
    with app.app_context():
        store = get_ledger_store()
        with store.unit_of_work((ids["asset_type_id"], ids["site_id"])):
            store.replenish(ids["asset_type_id"], ids["site_id"], quantity, "25")


def _on_hand(app, ids):
    with app.app_context():
        return get_ledger_store().quantity_on_hand(ids["asset_type_id"], ids["site_id"])


def _run_threads(count, target):
    barrier = threading.Barrier(count)
    results = []
    results_lock = threading.Lock()

    def worker(index):
        barrier.wait()
        try:
            outcome = ("ok", target(index))
        except Exception as exc:
            outcome = ("error", exc)
        with results_lock:
            results.append(outcome)

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(count)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(THREAD_TIMEOUT_SECONDS)
    assert not any(t.is_alive() for t in threads), "worker thread hung"
    return results


class TestConcurrentExpenditure:

    def test_only_one_of_two_competing_expenditures_succeeds(self, file_app, seeded):
        _stock(file_app, seeded, 30)
        actor = Actor(user_id=seeded["user_id"], role=ROLE_SITE_COMMANDER, site_id=seeded["site_id"])

        def expend(index):
            with file_app.app_context():
                expenditure = expenditure_service.record_expenditure(
                    get_ledger_store(),
                    actor,
                    seeded["asset_type_id"],
                    seeded["site_id"],
                    20,
                    purpose=f"Demolition {index}",
                )
                return expenditure.id

        results = _run_threads(2, expend)

        successes = [value for status, value in results if status == "ok"]
        failures = [value for status, value in results if status == "error"]
        assert len(successes) == 1
        assert len(failures) == 1
        assert isinstance(failures[0], InsufficientStock)
        assert failures[0].available == 10
        assert failures[0].requested == 20

        assert _on_hand(file_app, seeded) == 10
        with file_app.app_context():
            assert db.session.query(Expenditure).count() == 1


class TestConcurrentDecrements:

    def test_quantity_never_goes_negative(self, file_app, seeded):
        _stock(file_app, seeded, 10)
        key = (seeded["asset_type_id"], seeded["site_id"])

        def take_two(index):
            with file_app.app_context():
                store = get_ledger_store()
                with store.unit_of_work(key):
                    return store.reserve_and_decrement(*key, 2).quantity

        results = _run_threads(8, take_two)

        successes = [value for status, value in results if status == "ok"]
        failures = [value for status, value in results if status == "error"]
        assert len(successes) == 5
        assert len(failures) == 3
        assert all(isinstance(exc, InsufficientStock) for exc in failures)
        assert sorted(successes) == [0, 2, 4, 6, 8]
        assert _on_hand(file_app, seeded) == 0

    def test_replenish_and_decrement_interleave(self, file_app, seeded):
        _stock(file_app, seeded, 5)
        key = (seeded["asset_type_id"], seeded["site_id"])

        def move(index):
            with file_app.app_context():
                store = get_ledger_store()
                with store.unit_of_work(key):
                    if index % 2:
                        store.replenish(*key, 1, "25")
                    else:
                        store.reserve_and_decrement(*key, 1)

        results = _run_threads(10, move)

        assert all(status == "ok" for status, _ in results)
        assert _on_hand(file_app, seeded) == 5
