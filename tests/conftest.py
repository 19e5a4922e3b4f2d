"""
Provider Management - Test Configuration

Pytest fixtures and configuration for the test suite.
Unit tests run against in-memory SQLite; tests marked requires_postgres
need DATABASE_URL to point at a PostgreSQL server.
"""

import os
import pytest
from unittest.mock import MagicMock, patch

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker


# =============================================================================
# Markers
# =============================================================================

def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line(
        "markers",
        "requires_postgres: mark test as requiring PostgreSQL database",
    )
    config.addinivalue_line(
        "markers",
        "integration: mark test as an integration test",
    )


# =============================================================================
# Environment Configuration
# =============================================================================

@pytest.fixture(scope="session", autouse=True)
def setup_test_environment():
    """Configure environment for testing."""
    os.environ.setdefault("ENVIRONMENT", "test")
    os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
    os.environ.setdefault("LOG_LEVEL", "WARNING")
    os.environ.setdefault("LOG_FILE", "")

    from config.settings import clear_settings_cache
    clear_settings_cache()

    yield

    clear_settings_cache()


# =============================================================================
# Mock Fixtures
# =============================================================================

@pytest.fixture
def mock_settings(tmp_path):
    """Mock settings for testing."""
    settings = MagicMock()
    settings.database_url = f"sqlite:///{tmp_path / 'providers.db'}"
    settings.database_pool_size = 5
    settings.database_max_overflow = 10
    settings.database_pool_timeout = 30
    settings.database_echo = False
    settings.log_level = "WARNING"
    settings.log_file = None
    settings.log_format = "json"
    settings.log_max_bytes = 1024
    settings.log_backup_count = 1
    settings.environment = "test"
    settings.is_development = False
    settings.is_test = True
    settings.get_log_file_path.return_value = None

    with patch("config.settings.get_settings", return_value=settings), \
         patch("config.logging.get_settings", return_value=settings), \
         patch("database.connection.get_settings", return_value=settings):
        yield settings


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def engine():
    """Create in-memory SQLite engine for testing."""
    from database.connection import enable_sqlite_savepoints
    from database.models import Base

    engine = create_engine("sqlite:///:memory:", echo=False)
    enable_sqlite_savepoints(engine)
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session(engine):
    """Create a new database session for each test."""
    Session = sessionmaker(bind=engine)
    session = Session()
    yield session
    session.rollback()
    session.close()


def check_postgres_available():
    """Check if PostgreSQL is available for testing."""
    db_url = os.environ.get("DATABASE_URL", "")
    return db_url.startswith("postgresql")


@pytest.fixture(scope="function")
def postgres_session():
    """
    Create a PostgreSQL session for integration tests.

    Skip tests if PostgreSQL is not configured.
    """
    if not check_postgres_available():
        pytest.skip("PostgreSQL not available for testing")

    from database.models import Base

    engine = create_engine(os.environ["DATABASE_URL"], echo=False)
    Base.metadata.create_all(engine)
    session = sessionmaker(bind=engine)()

    yield session

    session.rollback()
    session.close()
    Base.metadata.drop_all(engine)
    engine.dispose()


# =============================================================================
# Sample Data Factories
# =============================================================================

@pytest.fixture
def role_factory(session):
    """Factory for persisted provider roles."""
    from database.models import ProviderRole

    def _create_role(name="Nurse", **kwargs):
        role = ProviderRole(name=name, **kwargs)
        session.add(role)
        session.flush()
        return role
    return _create_role


@pytest.fixture
def provider_factory(session, role_factory):
    """
    Factory for a persisted person with one name and one provider record.

    Extra addresses are given as dicts of PersonAddress fields.
    """
    from database.models import Person, PersonAddress, PersonName, Provider

    counter = {"n": 0}

    def _create_provider(
        given_name="Jane",
        family_name="Doe",
        middle_name=None,
        family_name2=None,
        identifier=None,
        role=None,
        retired=False,
        voided=False,
        addresses=(),
    ):
        counter["n"] += 1
        person = Person(
            voided=voided,
            names=[
                PersonName(
                    given_name=given_name,
                    middle_name=middle_name,
                    family_name=family_name,
                    family_name2=family_name2,
                    preferred=True,
                )
            ],
            addresses=[PersonAddress(**address) for address in addresses],
        )
        provider = Provider(
            person=person,
            provider_role=role,
            identifier=identifier or f"PRV-{counter['n']:04d}",
            retired=retired,
        )
        session.add_all([person, provider])
        session.flush()
        return person
    return _create_provider
