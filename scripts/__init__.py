"""
Provider Management - Utility Scripts

This package contains utility scripts for database setup and maintenance.

Scripts:
    seed_roles: Populate database with provider roles and supervision links

Usage:
    python -m scripts.seed_roles
    python -m scripts.seed_roles --dry-run
"""
