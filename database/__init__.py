"""
Provider Management - Database Package

This package provides database connectivity, ORM models and data access.

Modules:
    models: SQLAlchemy ORM models for people, providers and roles
    connection: Database engine and session management
    search: Provider search query construction
    repository: Data access layer with lookups, saves and searches

Usage:
    from database.connection import get_session, init_database
    from database.repository import ProviderRepository

    init_database()

    with get_session() as session:
        repo = ProviderRepository(session)
        people = repo.search_persons(name="Doe, Jane")
"""

from database.models import (
    Base,
    Person,
    PersonName,
    PersonAddress,
    RelationshipType,
    ProviderRole,
    Provider,
    ProviderSuggestion,
    SupervisionSuggestion,
    SupervisionSuggestionType,
)
from database.connection import (
    get_engine,
    get_session,
    init_database,
    close_engine,
)
from database.search import (
    AddressCriteria,
    AddressField,
    ProviderSearchCriteria,
    build_provider_search,
)
from database.repository import (
    PersonRepository,
    RelationshipTypeRepository,
    ProviderRoleRepository,
    ProviderRepository,
    ProviderSuggestionRepository,
    SupervisionSuggestionRepository,
    UnitOfWork,
)

__all__ = [
    # Models
    "Base",
    "Person",
    "PersonName",
    "PersonAddress",
    "RelationshipType",
    "ProviderRole",
    "Provider",
    "ProviderSuggestion",
    "SupervisionSuggestion",
    "SupervisionSuggestionType",
    # Connection
    "get_engine",
    "get_session",
    "init_database",
    "close_engine",
    # Search
    "AddressCriteria",
    "AddressField",
    "ProviderSearchCriteria",
    "build_provider_search",
    # Repositories
    "PersonRepository",
    "RelationshipTypeRepository",
    "ProviderRoleRepository",
    "ProviderRepository",
    "ProviderSuggestionRepository",
    "SupervisionSuggestionRepository",
    "UnitOfWork",
]
