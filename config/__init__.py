"""
Configuration module.

Exports:
    settings: Planner settings instance
    get_settings: Function to get settings (cached)
    configure_logging: structlog setup
"""

from config.settings import settings, get_settings, Settings
from config.logging_conf import configure_logging

__all__ = [
    # Settings
    "settings",
    "get_settings",
    "Settings",

    # Logging
    "configure_logging",
]
