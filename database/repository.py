"""
Provider Management - Database Repository Layer

Provides data access for people, providers, provider roles and suggestion
rules. Implements the Repository pattern to separate business logic from
data access. Storage errors are not caught here; they reach the caller
as SQLAlchemy exceptions.

Repositories:
    - PersonRepository: Manage people
    - RelationshipTypeRepository: Manage relationship types
    - ProviderRoleRepository: Manage provider roles and supervision links
    - ProviderRepository: Provider search and lookups
    - ProviderSuggestionRepository: Manage provider suggestions
    - SupervisionSuggestionRepository: Manage supervision suggestions

Usage:
    from database.repository import ProviderRepository
    from database.connection import get_session

    with get_session() as session:
        repo = ProviderRepository(session)
        people = repo.search_persons(name="Jane Doe")
"""

import logging
from typing import Any, Optional, Sequence, Union

from sqlalchemy import select
from sqlalchemy.orm import Session, aliased

from database.models import (
    Person,
    Provider,
    ProviderRole,
    ProviderSuggestion,
    RelationshipType,
    SupervisionSuggestion,
    SupervisionSuggestionType,
)
from database.search import (
    AddressCriteria,
    ProviderSearchCriteria,
    build_provider_search,
)


logger = logging.getLogger(__name__)


# =============================================================================
# Base Repository
# =============================================================================

class BaseRepository:
    """
    Base repository with common operations.

    Provides lookup by primary key and uuid, save and delete.
    Subclasses add entity-specific queries.
    """

    model_class: type = None

    def __init__(self, session: Session):
        """
        Initialize repository with a session.

        Args:
            session: SQLAlchemy session for database operations
        """
        self.session = session

    def get_by_id(self, id: int) -> Optional[Any]:
        """Get entity by primary key."""
        return self.session.get(self.model_class, id)

    def get_by_uuid(self, uuid: str) -> Optional[Any]:
        """Get entity by its unique external identifier."""
        return self.session.query(self.model_class).filter(
            self.model_class.uuid == uuid
        ).one_or_none()

    def save(self, entity: Any) -> Any:
        """
        Insert or update an entity.

        Args:
            entity: New or already persistent entity

        Returns:
            The saved entity, with generated keys populated
        """
        self.session.add(entity)
        self.session.flush()

        logger.debug(f"Saved {self.model_class.__name__}: {entity.uuid}")
        return entity

    def delete(self, entity: Any) -> None:
        """Delete an entity."""
        self.session.delete(entity)
        self.session.flush()

        logger.debug(f"Deleted {self.model_class.__name__}: {entity.uuid}")


# =============================================================================
# Person Repository
# =============================================================================

class PersonRepository(BaseRepository):
    """Repository for Person entities."""

    model_class = Person


class RelationshipTypeRepository(BaseRepository):
    """Repository for RelationshipType entities."""

    model_class = RelationshipType

    def get_by_a_is_to_b(self, label: str) -> Optional[RelationshipType]:
        """Get relationship type by its A-to-B label."""
        return self.session.query(RelationshipType).filter(
            RelationshipType.a_is_to_b == label
        ).first()


# =============================================================================
# Provider Role Repository
# =============================================================================

class ProviderRoleRepository(BaseRepository):
    """Repository for ProviderRole entities."""

    model_class = ProviderRole

    def get_all(self, include_retired: bool = False) -> list[ProviderRole]:
        """Get all provider roles, optionally including retired ones."""
        query = self.session.query(ProviderRole)
        if not include_retired:
            query = query.filter(ProviderRole.retired.is_(False))
        return query.all()

    def get_by_name(self, name: str) -> Optional[ProviderRole]:
        """Get provider role by name, retired or not."""
        return self.session.query(ProviderRole).filter(
            ProviderRole.name == name
        ).first()

    def get_by_relationship_type(
        self,
        relationship_type: RelationshipType,
    ) -> list[ProviderRole]:
        """Get non-retired roles whose providers may hold the relationship type."""
        return self.session.query(ProviderRole).join(
            ProviderRole.relationship_types
        ).filter(
            ProviderRole.retired.is_(False),
            RelationshipType.id == relationship_type.id,
        ).all()

    def get_by_supervisee_provider_role(
        self,
        provider_role: ProviderRole,
    ) -> list[ProviderRole]:
        """Get non-retired roles that may supervise the given role."""
        supervisee = aliased(ProviderRole)
        return self.session.query(ProviderRole).join(
            ProviderRole.supervisee_provider_roles.of_type(supervisee)
        ).filter(
            ProviderRole.retired.is_(False),
            supervisee.id == provider_role.id,
        ).all()


# =============================================================================
# Provider Repository
# =============================================================================

class ProviderRepository(BaseRepository):
    """Repository for Provider entities."""

    model_class = Provider

    def search(self, criteria: ProviderSearchCriteria) -> list[Person]:
        """
        Find the people whose providers match the criteria.

        Args:
            criteria: Search filters

        Returns:
            Distinct people ordered by given, middle and family name
        """
        logger.debug(
            "Searching providers",
            extra={"filters": criteria.active_filters()},
        )

        # Pending roles need ids before they can be used as filter values
        self.session.flush()
        stmt = build_provider_search(criteria)
        people = self.session.execute(stmt).scalars().unique().all()

        logger.debug(f"Provider search matched {len(people)} people")
        return list(people)

    def search_persons(
        self,
        name: Optional[str] = None,
        identifier: Optional[str] = None,
        address: Optional[AddressCriteria] = None,
        person_attributes: Optional[Sequence[Any]] = None,
        provider_roles: Optional[Sequence[Union[ProviderRole, int]]] = None,
        include_retired: bool = False,
    ) -> list[Person]:
        """
        Find people by provider search filters.

        Args:
            name: Free-text name, e.g. "Jane Doe" or "Doe, Jane"
            identifier: Provider identifier prefix
            address: Partial address
            person_attributes: Accepted but not applied
            provider_roles: Roles (or role ids) to restrict to
            include_retired: Also match retired providers

        Returns:
            Distinct people ordered by given, middle and family name
        """
        return self.search(
            ProviderSearchCriteria(
                name=name,
                identifier=identifier,
                address=address,
                person_attributes=tuple(person_attributes or ()),
                provider_roles=tuple(provider_roles or ()),
                include_retired=include_retired,
            )
        )

    def get_by_person(
        self,
        person: Person,
        include_retired: bool = False,
    ) -> list[Provider]:
        """Get the provider records of a person, ordered by id."""
        query = self.session.query(Provider).filter(
            Provider.person_id == person.id
        )
        if not include_retired:
            query = query.filter(Provider.retired.is_(False))
        return query.order_by(Provider.id).all()

    def get_by_provider_roles(
        self,
        roles: Sequence[ProviderRole],
        include_retired: bool = False,
    ) -> list[Provider]:
        """Get providers holding any of the given roles, ordered by id."""
        if not roles:
            return []

        query = self.session.query(Provider).filter(
            Provider.provider_role_id.in_([role.id for role in roles])
        )
        if not include_retired:
            query = query.filter(Provider.retired.is_(False))
        return query.order_by(Provider.id).all()


# =============================================================================
# Suggestion Repositories
# =============================================================================

class ProviderSuggestionRepository(BaseRepository):
    """Repository for ProviderSuggestion entities."""

    model_class = ProviderSuggestion

    def get_by_relationship_type(
        self,
        relationship_type: RelationshipType,
    ) -> list[ProviderSuggestion]:
        """Get non-retired suggestions for a relationship type."""
        return self.session.query(ProviderSuggestion).filter(
            ProviderSuggestion.retired.is_(False),
            ProviderSuggestion.relationship_type_id == relationship_type.id,
        ).all()


class SupervisionSuggestionRepository(BaseRepository):
    """Repository for SupervisionSuggestion entities."""

    model_class = SupervisionSuggestion

    def get_by_provider_role_and_suggestion_type(
        self,
        provider_role: ProviderRole,
        suggestion_type: Optional[SupervisionSuggestionType] = None,
    ) -> list[SupervisionSuggestion]:
        """
        Get non-retired supervision suggestions for a provider role.

        Args:
            provider_role: Role the suggestions belong to
            suggestion_type: Restrict to one direction; None returns both

        Returns:
            Matching suggestions
        """
        stmt = select(SupervisionSuggestion).where(
            SupervisionSuggestion.retired.is_(False),
            SupervisionSuggestion.provider_role_id == provider_role.id,
        )
        if suggestion_type is not None:
            stmt = stmt.where(SupervisionSuggestion.suggestion_type == suggestion_type)
        return list(self.session.scalars(stmt).all())


# =============================================================================
# Unit of Work
# =============================================================================

class UnitOfWork:
    """
    Unit of Work pattern for managing transactions.

    Groups multiple repository operations into a single transaction.

    Usage:
        with UnitOfWork(session) as uow:
            role = uow.provider_roles.save(ProviderRole(name="Nurse"))
            uow.providers.save(Provider(person=person, provider_role=role))
            uow.commit()
    """

    def __init__(self, session: Session):
        """
        Initialize with a session.

        Args:
            session: SQLAlchemy session
        """
        self.session = session
        self.persons = PersonRepository(session)
        self.relationship_types = RelationshipTypeRepository(session)
        self.provider_roles = ProviderRoleRepository(session)
        self.providers = ProviderRepository(session)
        self.provider_suggestions = ProviderSuggestionRepository(session)
        self.supervision_suggestions = SupervisionSuggestionRepository(session)

    def __enter__(self) -> "UnitOfWork":
        """Enter context."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit context, rollback on exception."""
        if exc_type is not None:
            self.rollback()

    def commit(self) -> None:
        """Commit the transaction."""
        self.session.commit()

    def rollback(self) -> None:
        """Rollback the transaction."""
        self.session.rollback()


# =============================================================================
# Module Exports
# =============================================================================

__all__ = [
    "BaseRepository",
    "PersonRepository",
    "RelationshipTypeRepository",
    "ProviderRoleRepository",
    "ProviderRepository",
    "ProviderSuggestionRepository",
    "SupervisionSuggestionRepository",
    "UnitOfWork",
]
