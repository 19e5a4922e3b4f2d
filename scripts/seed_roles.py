"""
Provider Management - Provider Role Seeding Script

Seeds the database with provider roles from provider_roles.yaml, linking
each role to its patient relationship types and the roles it supervises.
This script is typically run once during initial setup and again when the
role list changes.

Usage:
    python -m scripts.seed_roles
    python -m scripts.seed_roles --config path/to/roles.yaml --dry-run
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import yaml
from sqlalchemy.orm import Session

from config.settings import get_settings
from config.logging import setup_logging
from database.connection import get_session, init_database
from database.models import ProviderRole, RelationshipType
from database.repository import ProviderRoleRepository, RelationshipTypeRepository


logger = logging.getLogger(__name__)

# b_is_to_a label for relationship types created by this script
DEFAULT_PATIENT_LABEL = "Patient"


def load_roles_config(config_path: Optional[Path] = None) -> dict:
    """
    Load provider roles configuration from YAML file.

    Args:
        config_path: File to read; defaults to the configured roles file

    Returns:
        Parsed roles configuration dictionary

    Raises:
        FileNotFoundError: If the file doesn't exist
        yaml.YAMLError: If YAML is invalid
    """
    if config_path is None:
        config_path = get_settings().get_provider_roles_path()

    if not config_path.exists():
        raise FileNotFoundError(f"Provider roles config not found: {config_path}")

    logger.info(f"Loading provider roles from {config_path}")

    with open(config_path, "r") as f:
        config = yaml.safe_load(f)

    return config or {}


def _get_or_create_relationship_type(
    repo: RelationshipTypeRepository,
    label: str,
) -> RelationshipType:
    relationship_type = repo.get_by_a_is_to_b(label)
    if relationship_type is None:
        logger.info(f"Creating relationship type: {label}")
        relationship_type = repo.save(
            RelationshipType(a_is_to_b=label, b_is_to_a=DEFAULT_PATIENT_LABEL)
        )
    return relationship_type


def apply_roles(session: Session, roles_config: list[dict]) -> tuple[int, int, int]:
    """
    Create or update provider roles on the given session.

    Roles are matched by name. Supervisee links are resolved in a second
    pass so a role may name a supervisee defined later in the file.
    Each role is written inside its own savepoint; a role that fails is
    rolled back, logged and counted as skipped. Nothing is committed.

    Args:
        session: Session to write through
        roles_config: Role entries from the configuration file

    Returns:
        Tuple of (created_count, updated_count, skipped_count)
    """
    role_repo = ProviderRoleRepository(session)
    relationship_repo = RelationshipTypeRepository(session)

    created = 0
    updated = 0
    skipped = 0
    seeded: dict[str, tuple[ProviderRole, list[str]]] = {}

    for role_config in roles_config:
        name = role_config.get("name")

        if not name:
            logger.warning("Provider role missing 'name' field, skipping")
            skipped += 1
            continue

        role = None
        try:
            # Savepoint per role; a failed flush leaves earlier roles intact
            with session.begin_nested():
                role = role_repo.get_by_name(name)
                is_new = role is None

                if is_new:
                    logger.info(f"Creating new provider role: {name}")
                    role = ProviderRole(name=name)
                else:
                    logger.info(f"Updating existing provider role: {name}")

                role.description = role_config.get("description", role.description)
                role.retired = role_config.get("retired", False)
                role.relationship_types = [
                    _get_or_create_relationship_type(relationship_repo, label)
                    for label in role_config.get("relationship_types") or []
                ]
                role_repo.save(role)

        except Exception as e:
            if role is not None and role in session.new:
                session.expunge(role)
            logger.error(f"Failed to process provider role {name}: {e}")
            skipped += 1
            continue

        if is_new:
            created += 1
        else:
            updated += 1
        seeded[name] = (role, role_config.get("supervisees") or [])

    for name, (role, supervisee_names) in seeded.items():
        try:
            with session.begin_nested():
                role.supervisee_provider_roles = _resolve_supervisees(
                    role_repo, name, supervisee_names
                )
                role_repo.save(role)
        except Exception as e:
            logger.error(f"Failed to link supervisees for provider role {name}: {e}")

    return created, updated, skipped


def _resolve_supervisees(
    repo: ProviderRoleRepository,
    name: str,
    supervisee_names: list[str],
) -> list[ProviderRole]:
    supervisees = []
    for supervisee_name in supervisee_names:
        supervisee = repo.get_by_name(supervisee_name)
        if supervisee is None:
            logger.warning(
                f"Unknown supervisee role {supervisee_name!r} for {name}, ignoring"
            )
            continue
        supervisees.append(supervisee)
    return supervisees


def seed_roles(
    dry_run: bool = False,
    config_path: Optional[Path] = None,
) -> tuple[int, int, int]:
    """
    Seed provider roles from the configuration file.

    Args:
        dry_run: If True, don't commit changes to database
        config_path: File to read; defaults to the configured roles file

    Returns:
        Tuple of (created_count, updated_count, skipped_count)
    """
    config = load_roles_config(config_path)
    roles = config.get("provider_roles", [])

    if not roles:
        logger.warning("No provider roles defined in configuration")
        return 0, 0, 0

    with get_session() as session:
        result = apply_roles(session, roles)

        if not dry_run:
            session.commit()
            logger.info("Changes committed to database")
        else:
            session.rollback()
            logger.info("Dry run - changes rolled back")

    return result


def main(argv: Optional[list[str]] = None) -> int:
    """
    Main entry point for provider role seeding.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    import argparse

    parser = argparse.ArgumentParser(
        description="Seed database with provider roles"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Provider roles YAML file (defaults to PROVIDER_ROLES_FILE)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Preview changes without committing to database",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args(argv)

    setup_logging()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    logger.info("Provider Management - Role Seeding")

    if not init_database():
        logger.error("Database initialization failed")
        return 1

    try:
        created, updated, skipped = seed_roles(
            dry_run=args.dry_run,
            config_path=args.config,
        )

        logger.info(
            "Seeding complete",
            extra={
                "roles_created": created,
                "roles_updated": updated,
                "roles_skipped": skipped,
                "dry_run": args.dry_run,
            },
        )
        return 0

    except (FileNotFoundError, yaml.YAMLError) as e:
        logger.error(f"Configuration error: {e}")
        return 1
    except Exception as e:
        logger.exception(f"Seeding failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
