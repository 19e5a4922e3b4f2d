"""
Provider Management - Provider Search

Builds the person search used to find providers by name, identifier,
address and role. The search request is turned into a single SQLAlchemy
``Select`` by a pure function; the repository executes it once.

Matching rules:
    - Name: "Doe, Jane" is read as "Doe Jane". Every whitespace-separated
      token must be a case-insensitive prefix of the given, family, middle
      or second family name.
    - Identifier: case-insensitive prefix of the provider identifier.
    - Address: every supplied field is a case-insensitive substring of the
      same stored address.
    - Roles: provider role is one of those supplied.
    - Retired providers are excluded unless asked for; voided people always.

Results are ordered by given, middle and family name. A person joined
through several providers, names or addresses is returned once, at the
position of its first row.

Usage:
    from database.search import AddressCriteria, ProviderSearchCriteria
    from database.repository import ProviderRepository

    criteria = ProviderSearchCriteria(
        name="Doe, Jane",
        address=AddressCriteria(city_village="spring"),
    )
    people = ProviderRepository(session).search(criteria)
"""

import enum
import logging
from dataclasses import dataclass, field, fields
from typing import Any, Iterator, Optional, Sequence, Union

from sqlalchemy import Select, or_, select
from sqlalchemy.orm import InstrumentedAttribute

from database.models import (
    Person,
    PersonAddress,
    PersonName,
    Provider,
    ProviderRole,
)


logger = logging.getLogger(__name__)

# Name columns a search token may match, in matching order
NAME_COLUMNS: tuple[InstrumentedAttribute, ...] = (
    PersonName.given_name,
    PersonName.family_name,
    PersonName.middle_name,
    PersonName.family_name2,
)

# Result ordering
NAME_ORDER: tuple[InstrumentedAttribute, ...] = (
    PersonName.given_name,
    PersonName.middle_name,
    PersonName.family_name,
)


# =============================================================================
# Search Fields
# =============================================================================

class AddressField(enum.Enum):
    """Address fields that can be searched."""
    ADDRESS1 = "address1"
    ADDRESS2 = "address2"
    ADDRESS3 = "address3"
    ADDRESS4 = "address4"
    ADDRESS5 = "address5"
    ADDRESS6 = "address6"
    CITY_VILLAGE = "city_village"
    COUNTRY = "country"
    COUNTY_DISTRICT = "county_district"
    STATE_PROVINCE = "state_province"
    POSTAL_CODE = "postal_code"

    @property
    def column(self) -> InstrumentedAttribute:
        """Stored ``PersonAddress`` column for this field."""
        return ADDRESS_COLUMNS[self]


ADDRESS_COLUMNS: dict[AddressField, InstrumentedAttribute] = {
    AddressField.ADDRESS1: PersonAddress.address1,
    AddressField.ADDRESS2: PersonAddress.address2,
    AddressField.ADDRESS3: PersonAddress.address3,
    AddressField.ADDRESS4: PersonAddress.address4,
    AddressField.ADDRESS5: PersonAddress.address5,
    AddressField.ADDRESS6: PersonAddress.address6,
    AddressField.CITY_VILLAGE: PersonAddress.city_village,
    AddressField.COUNTRY: PersonAddress.country,
    AddressField.COUNTY_DISTRICT: PersonAddress.county_district,
    AddressField.STATE_PROVINCE: PersonAddress.state_province,
    AddressField.POSTAL_CODE: PersonAddress.postal_code,
}


# =============================================================================
# Search Criteria
# =============================================================================

@dataclass(frozen=True)
class AddressCriteria:
    """
    Partial address to match against stored addresses.

    Fields left as None are not searched. An empty string still filters,
    matching any address where that field is set. Supplying any
    AddressCriteria, even one with every field None, limits results to
    people with at least one stored address.
    """

    address1: Optional[str] = None
    address2: Optional[str] = None
    address3: Optional[str] = None
    address4: Optional[str] = None
    address5: Optional[str] = None
    address6: Optional[str] = None
    city_village: Optional[str] = None
    country: Optional[str] = None
    county_district: Optional[str] = None
    state_province: Optional[str] = None
    postal_code: Optional[str] = None

    @classmethod
    def from_address(cls, address: Any) -> "AddressCriteria":
        """Build criteria from any object with address attributes (e.g. PersonAddress)."""
        return cls(**{
            f.name: getattr(address, f.name, None) for f in fields(cls)
        })

    def items(self) -> Iterator[tuple[AddressField, str]]:
        """Yield each supplied field with its search value."""
        for address_field in AddressField:
            value = getattr(self, address_field.value)
            if value is not None:
                yield address_field, value


@dataclass(frozen=True)
class ProviderSearchCriteria:
    """
    Filters for a provider search.

    ``person_attributes`` is accepted for callers that already pass it but
    is not used to filter results.
    """

    name: Optional[str] = None
    identifier: Optional[str] = None
    address: Optional[AddressCriteria] = None
    person_attributes: Sequence[Any] = field(default_factory=tuple)
    provider_roles: Sequence[Union[ProviderRole, int]] = field(default_factory=tuple)
    include_retired: bool = False

    def active_filters(self) -> list[str]:
        """Names of the filters this search will apply."""
        active = []
        if not self.include_retired:
            active.append("retired")
        if self.identifier:
            active.append("identifier")
        if self.provider_roles:
            active.append("provider_roles")
        if tokenize_name(self.name):
            active.append("name")
        if self.address is not None:
            active.append("address")
        return active


# =============================================================================
# Query Construction
# =============================================================================

def tokenize_name(name: Optional[str]) -> list[str]:
    """
    Split a free-text name into search tokens.

    "Last, First" input is supported by treating ", " as a space.

    Args:
        name: Name as typed by the user

    Returns:
        Non-empty tokens, in input order
    """
    if not name:
        return []
    return name.replace(", ", " ").split()


def _role_id(role: Union[ProviderRole, int]) -> Optional[int]:
    # A role that was never flushed has no id and matches no provider
    if isinstance(role, ProviderRole):
        return role.id
    return int(role)


def _provider_clauses(criteria: ProviderSearchCriteria) -> list:
    clauses = []

    if not criteria.include_retired:
        clauses.append(Provider.retired.is_(False))

    if criteria.identifier:
        clauses.append(
            Provider.identifier.istartswith(criteria.identifier, autoescape=True)
        )

    if criteria.provider_roles:
        clauses.append(
            Provider.provider_role_id.in_(
                [_role_id(role) for role in criteria.provider_roles]
            )
        )

    return clauses


def _name_clauses(name: Optional[str]) -> list:
    # One clause per token; each token may match a different name column
    return [
        or_(*(column.istartswith(token, autoescape=True) for column in NAME_COLUMNS))
        for token in tokenize_name(name)
    ]


def _address_clauses(address: AddressCriteria) -> list:
    return [
        address_field.column.icontains(value, autoescape=True)
        for address_field, value in address.items()
    ]


def build_provider_search(criteria: ProviderSearchCriteria) -> Select:
    """
    Build the person search statement for the given criteria.

    The statement selects ``Person`` rows joined to their providers and
    names (and addresses when an address is supplied). Rows are not
    de-duplicated here; execute with ``.scalars().unique()``.
    Roles are matched by primary key, so role instances must be flushed
    before the statement is built; ProviderRepository.search does this.

    Args:
        criteria: Search filters

    Returns:
        SQLAlchemy Select ready for execution
    """
    if criteria.person_attributes:
        logger.debug(
            "Person attribute criteria are not applied to provider searches",
            extra={"person_attribute_count": len(criteria.person_attributes)},
        )

    clauses = [Person.voided.is_(False)]
    clauses.extend(_provider_clauses(criteria))
    clauses.extend(_name_clauses(criteria.name))

    stmt = (
        select(Person)
        .join(Provider, Provider.person_id == Person.id)
        .join(Person.names)
    )

    if criteria.address is not None:
        stmt = stmt.join(Person.addresses)
        clauses.extend(_address_clauses(criteria.address))

    return stmt.where(*clauses).order_by(*NAME_ORDER)


# =============================================================================
# Module Exports
# =============================================================================

__all__ = [
    "AddressField",
    "AddressCriteria",
    "ProviderSearchCriteria",
    "ADDRESS_COLUMNS",
    "NAME_COLUMNS",
    "NAME_ORDER",
    "tokenize_name",
    "build_provider_search",
]
