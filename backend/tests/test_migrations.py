"""
Schema migration tests.

Verifies:
- Upgrading an empty database to head creates every model table
- Every index and unique constraint declared on the models exists after upgrade
"""

from pathlib import Path

import pytest
from flask_migrate import downgrade, upgrade
from sqlalchemy import UniqueConstraint, inspect

from armory import create_app
from armory.extensions import db


MIGRATIONS_DIR = Path(__file__).resolve().parents[1] / "migrations"


@pytest.fixture
def migrated_app(tmp_path):
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'migrated.db'}",
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'LOG_LEVEL': 'WARNING',
    })
    with app.app_context():
        upgrade(directory=str(MIGRATIONS_DIR))
        yield app
        db.session.remove()
        db.engine.dispose()


class TestInitialRevision:

    def test_creates_every_model_table(self, migrated_app):
        tables = set(inspect(db.engine).get_table_names())
        assert {t.name for t in db.metadata.sorted_tables} <= tables

    def test_indexes_match_models(self, migrated_app):
        inspector = inspect(db.engine)
        for table in db.metadata.sorted_tables:
            expected = {index.name for index in table.indexes}
            actual = {index["name"] for index in inspector.get_indexes(table.name)}
            missing = expected - actual
            assert not missing, f"{table.name} missing indexes {sorted(missing)}"

    def test_unique_constraints_match_models(self, migrated_app):
        inspector = inspect(db.engine)
        for table in db.metadata.sorted_tables:
            expected = {c.name for c in table.constraints if isinstance(c, UniqueConstraint) and c.name}
            actual = {c["name"] for c in inspector.get_unique_constraints(table.name)}
            assert expected <= actual, table.name

    def test_downgrade_drops_everything(self, migrated_app):
        downgrade(directory=str(MIGRATIONS_DIR), revision="base")
        assert set(inspect(db.engine).get_table_names()) <= {"alembic_version"}
