"""
Provider Management - Database Models

SQLAlchemy ORM models for people, providers, provider roles and the
suggestion rules used to propose provider and supervisor assignments.
Column types are portable so the same models run on PostgreSQL and SQLite.

Tables:
    - person / person_name / person_address: Demographic records
    - relationship_type: Patient/provider relationship labels
    - provider_management_provider_role: Provider roles
    - provider_management_provider: Person-to-role assignments
    - provider_management_provider_suggestion: Provider suggestion rules
    - provider_management_supervision_suggestion: Supervision suggestion rules

Usage:
    from database.models import Person, PersonName, Provider, ProviderRole

    person = Person(names=[PersonName(given_name="Jane", family_name="Doe")])
    provider = Provider(person=person, provider_role=nurse, identifier="N-001")
"""

import enum
from datetime import datetime
from typing import Optional
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _new_uuid() -> str:
    return str(uuid4())


# =============================================================================
# Base Class
# =============================================================================

class Base(DeclarativeBase):
    """Base class for all models."""
    pass


# =============================================================================
# Enums
# =============================================================================

class SupervisionSuggestionType(enum.Enum):
    """Direction of a supervision suggestion."""
    SUPERVISOR_SUGGESTION = "supervisor_suggestion"    # Suggests supervisors
    SUPERVISEE_SUGGESTION = "supervisee_suggestion"    # Suggests supervisees


# =============================================================================
# Mixins
# =============================================================================

class TimestampMixin:
    """Mixin that adds created_at and updated_at timestamps."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class UuidMixin:
    """Mixin that adds a unique external identifier."""

    uuid: Mapped[str] = mapped_column(
        String(38),
        unique=True,
        nullable=False,
        default=_new_uuid,
        index=True,
    )


class RetireableMixin:
    """Mixin for metadata that is retired rather than deleted."""

    retired: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )
    retire_reason: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
    )


# =============================================================================
# Association Tables
# =============================================================================

provider_role_relationship_type = Table(
    "provider_management_provider_role_relationship_type",
    Base.metadata,
    Column(
        "provider_role_id",
        Integer,
        ForeignKey("provider_management_provider_role.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "relationship_type_id",
        Integer,
        ForeignKey("relationship_type.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)

provider_role_supervisee_provider_role = Table(
    "provider_management_provider_role_supervisee_provider_role",
    Base.metadata,
    Column(
        "provider_role_id",
        Integer,
        ForeignKey("provider_management_provider_role.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "supervisee_provider_role_id",
        Integer,
        ForeignKey("provider_management_provider_role.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


# =============================================================================
# Person Models
# =============================================================================

class Person(Base, UuidMixin, TimestampMixin):
    """
    A person known to the system.

    Providers are people; a person holds names and addresses and is
    soft-deleted by voiding.
    """
    __tablename__ = "person"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    gender: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
    )
    voided: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        index=True,
        comment="Voided people never appear in searches",
    )

    # Relationships
    names: Mapped[list["PersonName"]] = relationship(
        "PersonName",
        back_populates="person",
        cascade="all, delete-orphan",
    )
    addresses: Mapped[list["PersonAddress"]] = relationship(
        "PersonAddress",
        back_populates="person",
        cascade="all, delete-orphan",
    )
    providers: Mapped[list["Provider"]] = relationship(
        "Provider",
        back_populates="person",
    )

    def __repr__(self) -> str:
        return f"<Person(id={self.id!r}, uuid={self.uuid!r})>"


class PersonName(Base, UuidMixin):
    """A name held by a person."""
    __tablename__ = "person_name"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    person_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("person.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    given_name: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    middle_name: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    family_name: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    family_name2: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
        comment="Second family name",
    )
    preferred: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    person: Mapped["Person"] = relationship("Person", back_populates="names")

    __table_args__ = (
        Index("ix_person_name_given_family", "given_name", "family_name"),
    )

    def __repr__(self) -> str:
        return f"<PersonName(given={self.given_name!r}, family={self.family_name!r})>"


class PersonAddress(Base, UuidMixin):
    """A postal address held by a person."""
    __tablename__ = "person_address"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    person_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("person.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    address1: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    address2: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    address3: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    address4: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    address5: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    address6: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    city_village: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    country: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    county_district: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    state_province: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    postal_code: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    person: Mapped["Person"] = relationship("Person", back_populates="addresses")

    def __repr__(self) -> str:
        return f"<PersonAddress(city_village={self.city_village!r}, country={self.country!r})>"


class RelationshipType(Base, UuidMixin, RetireableMixin):
    """
    Relationship between two people, e.g. "Community Health Worker" / "Patient".

    Provider roles list the relationship types their providers may hold.
    """
    __tablename__ = "relationship_type"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    a_is_to_b: Mapped[str] = mapped_column(String(50), nullable=False)
    b_is_to_a: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<RelationshipType(a_is_to_b={self.a_is_to_b!r}, b_is_to_a={self.b_is_to_a!r})>"


# =============================================================================
# Provider Models
# =============================================================================

class ProviderRole(Base, UuidMixin, RetireableMixin, TimestampMixin):
    """
    Category of provider, e.g. nurse or community health worker.

    A role defines which patient relationships its providers may hold
    and which other roles it may supervise.
    """
    __tablename__ = "provider_management_provider_role"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
    )
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Relationships
    relationship_types: Mapped[list["RelationshipType"]] = relationship(
        "RelationshipType",
        secondary=provider_role_relationship_type,
    )
    supervisee_provider_roles: Mapped[list["ProviderRole"]] = relationship(
        "ProviderRole",
        secondary=provider_role_supervisee_provider_role,
        primaryjoin=lambda: ProviderRole.id == provider_role_supervisee_provider_role.c.provider_role_id,
        secondaryjoin=lambda: ProviderRole.id == provider_role_supervisee_provider_role.c.supervisee_provider_role_id,
    )

    def __repr__(self) -> str:
        return f"<ProviderRole(name={self.name!r}, retired={self.retired!r})>"


class Provider(Base, UuidMixin, RetireableMixin, TimestampMixin):
    """
    A person acting in a provider role.

    Usually one per person, but nothing prevents a person from holding
    several provider records.
    """
    __tablename__ = "provider_management_provider"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    person_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("person.id"),
        nullable=False,
        index=True,
    )
    provider_role_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("provider_management_provider_role.id"),
        nullable=True,
        index=True,
    )
    identifier: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        index=True,
        comment="External provider identifier",
    )

    person: Mapped["Person"] = relationship("Person", back_populates="providers")
    provider_role: Mapped[Optional["ProviderRole"]] = relationship("ProviderRole")

    __table_args__ = (
        Index("ix_provider_role_retired", "provider_role_id", "retired"),
    )

    def __repr__(self) -> str:
        return f"<Provider(identifier={self.identifier!r}, retired={self.retired!r})>"


# =============================================================================
# Suggestion Models
# =============================================================================

class ProviderSuggestion(Base, UuidMixin, RetireableMixin, TimestampMixin):
    """
    Rule for suggesting providers to a patient for a relationship type.

    The criteria are evaluated by the named evaluator outside this layer.
    """
    __tablename__ = "provider_management_provider_suggestion"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    criteria: Mapped[str] = mapped_column(Text, nullable=False)
    evaluator: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Evaluator used to run the criteria",
    )
    relationship_type_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("relationship_type.id"),
        nullable=False,
        index=True,
    )

    relationship_type: Mapped["RelationshipType"] = relationship("RelationshipType")

    def __repr__(self) -> str:
        return f"<ProviderSuggestion(name={self.name!r})>"


class SupervisionSuggestion(Base, UuidMixin, RetireableMixin, TimestampMixin):
    """Rule for suggesting supervisors or supervisees for a provider role."""
    __tablename__ = "provider_management_supervision_suggestion"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    criteria: Mapped[str] = mapped_column(Text, nullable=False)
    evaluator: Mapped[str] = mapped_column(String(255), nullable=False)
    provider_role_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("provider_management_provider_role.id"),
        nullable=False,
        index=True,
    )
    suggestion_type: Mapped[SupervisionSuggestionType] = mapped_column(
        SQLEnum(SupervisionSuggestionType, name="supervision_suggestion_type"),
        nullable=False,
    )

    provider_role: Mapped["ProviderRole"] = relationship("ProviderRole")

    def __repr__(self) -> str:
        return f"<SupervisionSuggestion(name={self.name!r}, type={self.suggestion_type!r})>"


# =============================================================================
# Module Exports
# =============================================================================

__all__ = [
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
    "provider_role_relationship_type",
    "provider_role_supervisee_provider_role",
]
