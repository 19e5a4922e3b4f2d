"""
Provider Management - Configuration Package

Modules:
    settings: Environment-based configuration using pydantic-settings
    logging: Root logger setup, formatters and LogContext

Usage:
    import logging
    from config import get_settings, setup_logging

    setup_logging()
    logger = logging.getLogger(__name__)
"""

from config.settings import get_settings, Settings
from config.logging import setup_logging, LogContext

__all__ = [
    "get_settings",
    "Settings",
    "setup_logging",
    "LogContext",
]
