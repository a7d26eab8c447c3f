"""
Unit tests for the Database lifecycle wrapper.
"""

import pytest
from sqlalchemy import text

from care_events.src.config.settings import AppSettings
from care_events.src.db.database import Database


@pytest.fixture
def database():
    db = Database(AppSettings(database_url='sqlite:///:memory:'))
    yield db
    db.close()


class TestDatabase:
    """Tests for open, session and close."""

    def test_not_open_until_opened(self, database):
        assert database.is_open is False
        with pytest.raises(RuntimeError):
            database.session()

    def test_open_is_idempotent(self, database):
        database.open()
        engine = database.engine

        database.open()

        assert database.engine is engine

    def test_session_and_schema(self, database):
        database.open()
        database.init_schema()

        session = database.session()
        try:
            tables = session.execute(
                text("SELECT name FROM sqlite_master WHERE type='table'")
            ).scalars().all()
            foreign_keys = session.execute(text("PRAGMA foreign_keys")).scalar()
        finally:
            session.close()

        assert {'institutions', 'events'} <= set(tables)
        assert foreign_keys == 1

    def test_close(self, database):
        database.open()
        database.close()

        assert database.is_open is False
        with pytest.raises(RuntimeError):
            database.engine
