"""
Provider Management - Database Connection Unit Tests

Tests for engine creation, session handling and initialization,
using a temporary SQLite database file.
"""

import pytest
from sqlalchemy import inspect

from database import connection
from database.models import ProviderRole


@pytest.fixture(autouse=True)
def fresh_engine(mock_settings):
    """Start and finish each test without a cached engine."""
    connection.close_engine()
    yield
    connection.close_engine()


class TestEngine:
    """Tests for engine lifecycle."""

    def test_engine_is_cached(self):
        assert connection.get_engine() is connection.get_engine()

    def test_close_engine_resets(self):
        first = connection.get_engine()

        connection.close_engine()

        assert connection.get_engine() is not first

    def test_uses_configured_url(self, mock_settings):
        engine = connection.get_engine()

        assert engine.url.get_backend_name() == "sqlite"
        assert engine.url.database == mock_settings.database_url.split("///", 1)[1]


class TestInitDatabase:
    """Tests for init_database and health checks."""

    def test_creates_tables_in_test_environment(self):
        assert connection.init_database() is True

        tables = inspect(connection.get_engine()).get_table_names()
        assert "provider_management_provider" in tables
        assert "person_name" in tables

    def test_skips_tables_in_production(self, mock_settings):
        mock_settings.is_test = False
        mock_settings.is_development = False

        assert connection.init_database() is True
        assert inspect(connection.get_engine()).get_table_names() == []

    def test_failure_returns_false(self, mock_settings):
        mock_settings.database_url = "sqlite:////nonexistent-dir/sub/providers.db"

        assert connection.init_database() is False

    def test_health_check(self):
        result = connection.check_database_health()

        assert result["healthy"] is True
        assert result["connected"] is True
        assert result["error"] is None


class TestGetSession:
    """Tests for the session context manager."""

    def test_session_round_trip(self):
        connection.init_database()

        with connection.get_session() as session:
            session.add(ProviderRole(name="Nurse"))
            session.commit()

        with connection.get_session() as session:
            assert session.query(ProviderRole).count() == 1

    def test_rolls_back_and_reraises(self):
        connection.init_database()

        with pytest.raises(RuntimeError):
            with connection.get_session() as session:
                session.add(ProviderRole(name="Nurse"))
                session.flush()
                raise RuntimeError("boom")

        with connection.get_session() as session:
            assert session.query(ProviderRole).count() == 0

    def test_outer_rollback_undoes_released_savepoint(self):
        connection.init_database()

        with connection.get_session() as session:
            with session.begin_nested():
                session.add(ProviderRole(name="Nurse"))
            session.rollback()

        with connection.get_session() as session:
            assert session.query(ProviderRole).count() == 0

    def test_raw_session(self):
        session = connection.get_raw_session()
        try:
            assert session.bind is connection.get_engine()
        finally:
            session.close()
